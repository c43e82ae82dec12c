"""Verification of Cognito-issued JWTs.

Covers:
- JWKS caching through KeyCache (24 hour TTL by default)
- Automatic key refresh on unknown kid (handles key rotation)
- RS256-only signatures, so algorithm confusion tokens are rejected
"""

from __future__ import annotations

from typing import Any, Optional

import jwt
import structlog

from portico.cognito.key_resolver import KeyResolver
from portico.core.token_verifier import TokenVerifier
from portico.exceptions import InvalidTokenError, MalformedTokenError
from portico.models import VerifiedClaims

log = structlog.get_logger()

# Cognito user pools sign every token with RS256
ALGORITHM = "RS256"


class CognitoVerifier(TokenVerifier):
    """Checks Cognito access or id tokens against the pool's published keys.

    Args:
        issuer: Expected ``iss`` claim, https://cognito-idp.{region}.amazonaws.com/{pool_id}
        key_resolver: Resolves a kid to the signing key
        token_use: Expected ``token_use`` claim ("access" or "id"). None skips the check.
        client_id: App client id. When set, access tokens must carry it as
            ``client_id`` and id tokens as ``aud``.
        clock_skew_seconds: Allowed clock skew for exp/nbf validation. Defaults to 60.
    """

    def __init__(
        self,
        issuer: str,
        key_resolver: KeyResolver,
        token_use: Optional[str] = None,
        client_id: Optional[str] = None,
        clock_skew_seconds: int = 60,
    ):
        self.issuer = issuer
        self.key_resolver = key_resolver
        self.token_use = token_use
        self.client_id = client_id
        self.clock_skew_seconds = clock_skew_seconds

    def _decode_unverified(self, token: str) -> tuple[dict[str, Any], dict[str, Any]]:
        try:
            header = jwt.get_unverified_header(token)
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise MalformedTokenError(f"Failed to decode token: {e}")
        return header, payload

    def verify(self, token: str) -> VerifiedClaims:
        """Verify a Cognito JWT token and return its claims."""
        header, _ = self._decode_unverified(token)
        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise MalformedTokenError("Token missing kid header")

        signing_key = self.key_resolver.resolve(kid)

        try:
            claims = jwt.decode(
                token,
                key=signing_key.public_key(),
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                leeway=self.clock_skew_seconds,
                options={"verify_aud": False, "require": ["exp", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            log.info("token_expired", kid=kid)
            raise InvalidTokenError("Token has expired")
        except jwt.PyJWTError as e:
            log.info("token_verification_failed", kid=kid, error=str(e))
            raise InvalidTokenError(f"Invalid token: {e}")

        self._check_token_use(claims)
        self._check_client(claims)

        verified = VerifiedClaims.from_payload(claims)
        log.debug("token_verified", sub=verified.sub, token_use=verified.token_use)
        return verified

    def _check_token_use(self, claims: dict[str, Any]) -> None:
        if self.token_use is None:
            return
        token_use = claims.get("token_use")
        if token_use != self.token_use:
            log.warning("token_use_mismatch", expected=self.token_use, got=token_use)
            raise InvalidTokenError(
                f"Invalid token_use: expected {self.token_use}, got {token_use}"
            )

    def _check_client(self, claims: dict[str, Any]) -> None:
        if self.client_id is None:
            return
        # Access tokens name the app client in client_id, id tokens in aud
        if claims.get("token_use") == "id":
            aud = claims.get("aud")
            audiences = aud if isinstance(aud, list) else [aud]
            if self.client_id not in audiences:
                raise InvalidTokenError("Token audience mismatch")
        elif claims.get("client_id") != self.client_id:
            raise InvalidTokenError("Token client_id mismatch")

    def get_unverified_claims(self, token: str) -> VerifiedClaims:
        """Decode the payload without any signature or claim checks."""
        _, payload = self._decode_unverified(token)
        return VerifiedClaims.from_payload(payload)
