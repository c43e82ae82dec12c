"""Portico models - provider-agnostic data structures."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from jwt.algorithms import RSAAlgorithm

from portico.exceptions import FetchError


class UserStatus(str, Enum):
    """User account status in identity provider."""

    UNCONFIRMED = "UNCONFIRMED"
    CONFIRMED = "CONFIRMED"
    ARCHIVED = "ARCHIVED"
    COMPROMISED = "COMPROMISED"
    UNKNOWN = "UNKNOWN"
    RESET_REQUIRED = "RESET_REQUIRED"
    FORCE_CHANGE_PASSWORD = "FORCE_CHANGE_PASSWORD"


# ==================== Signing Keys ====================


@dataclass(frozen=True)
class SigningKey:
    """A single public signing key published in a JWKS document."""

    kid: str
    jwk: Mapping[str, Any] = field(compare=False, repr=False)
    algorithm: Optional[str] = None

    @classmethod
    def from_jwk(cls, jwk: Mapping[str, Any]) -> SigningKey:
        kid = jwk.get("kid") if isinstance(jwk, Mapping) else None
        if not isinstance(kid, str) or not kid:
            raise FetchError("JWKS key is missing a kid")
        return cls(kid=kid, jwk=dict(jwk), algorithm=jwk.get("alg"))

    def public_key(self) -> Any:
        """Build the RSA public key object PyJWT verifies against."""
        return RSAAlgorithm.from_jwk(json.dumps(dict(self.jwk)))


@dataclass(frozen=True)
class KeySet:
    """Immutable snapshot of the provider's signing keys.

    Owned by the key cache and replaced wholesale on every refresh.
    """

    keys: tuple[SigningKey, ...]
    fetched_at: float

    @classmethod
    def from_jwks(cls, document: Any, fetched_at: float) -> KeySet:
        """Parse a ``{"keys": [...]}`` JWKS document.

        Raises:
            FetchError: If the document does not have the JWKS shape
        """
        if not isinstance(document, Mapping) or not isinstance(document.get("keys"), list):
            raise FetchError("JWKS document has no 'keys' list")
        return cls(
            keys=tuple(SigningKey.from_jwk(k) for k in document["keys"]),
            fetched_at=fetched_at,
        )

    def find(self, kid: str) -> Optional[SigningKey]:
        for key in self.keys:
            if key.kid == kid:
                return key
        return None

    @property
    def kids(self) -> list[str]:
        return [key.kid for key in self.keys]

    def age(self, now: float) -> float:
        return now - self.fetched_at


# ==================== Claims ====================


@dataclass
class VerifiedClaims:
    """Claims extracted from a JWT token."""

    sub: str  # User ID
    issuer: Optional[str] = None
    expires_at: Optional[int] = None
    issued_at: Optional[int] = None
    token_use: Optional[str] = None
    client_id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    groups: list[str] = field(default_factory=list)
    raw_claims: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, claims: Mapping[str, Any]) -> VerifiedClaims:
        return cls(
            sub=claims.get("sub", ""),
            issuer=claims.get("iss"),
            expires_at=claims.get("exp"),
            issued_at=claims.get("iat"),
            token_use=claims.get("token_use"),
            client_id=claims.get("client_id"),
            # Access tokens carry "username", id tokens "cognito:username"
            username=claims.get("username") or claims.get("cognito:username"),
            email=claims.get("email"),
            groups=list(claims.get("cognito:groups") or []),
            raw_claims=dict(claims),
        )

    @property
    def custom_attributes(self) -> dict[str, Any]:
        """Cognito ``custom:*`` attributes, keyed without the prefix."""
        return {
            key[len("custom:"):]: value
            for key, value in self.raw_claims.items()
            if key.startswith("custom:")
        }


# ==================== Account Management ====================


@dataclass
class AuthResult:
    """Result of a successful authentication."""

    access_token: str
    id_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"


@dataclass
class UserProfile:
    """User representation returned by the identity provider."""

    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_id: Optional[str] = None  # Sub/UUID
    status: UserStatus = UserStatus.UNKNOWN
    email_verified: bool = False
    attributes: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }


@dataclass
class CodeDelivery:
    """Where a confirmation or reset code was sent."""

    destination: str = ""
    delivery_medium: str = "EMAIL"
    attribute_name: str = "email"
