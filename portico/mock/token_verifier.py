"""Mock token verifier for local development without AWS Cognito.

Implements portico's TokenVerifier interface for local testing.
"""

import base64
import binascii
import json
import time
from typing import Any, Callable, Optional

from portico.core.token_verifier import TokenVerifier
from portico.exceptions import InvalidTokenError, MalformedTokenError
from portico.models import VerifiedClaims

MOCK_ISSUER = "http://localhost:8000/mock"


def encode_mock_token(claims: dict[str, Any]) -> str:
    """Encode claims in the mock token format (unpadded urlsafe base64 JSON)."""
    encoded = base64.urlsafe_b64encode(json.dumps(claims).encode("utf-8"))
    return encoded.rstrip(b"=").decode("ascii")


def _decode_mock_token(token: str) -> dict[str, Any]:
    try:
        padded = token + "=" * (-len(token) % 4)
        decoded = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
        claims = json.loads(decoded)
    except (json.JSONDecodeError, binascii.Error, UnicodeError) as e:
        raise MalformedTokenError(f"Invalid mock token format: {e}")
    if not isinstance(claims, dict):
        raise MalformedTokenError("Invalid mock token format: claims must be an object")
    return claims


class MockVerifier(TokenVerifier):
    """Mock token verifier that validates mock tokens.

    Mock tokens are base64-encoded JSON with format:
    {"sub": "user-123", "username": "a@b.c", "iss": MOCK_ISSUER,
     "token_use": "access", "exp": timestamp}

    Args:
        token_use: Expected token_use claim; None skips the check
        clock: Returns the current time in seconds
    """

    def __init__(
        self,
        token_use: Optional[str] = "access",
        clock: Callable[[], float] = time.time,
    ):
        self.token_use = token_use
        self._clock = clock

    def verify(self, token: str) -> VerifiedClaims:
        """Verify a mock token and return its claims."""
        claims = _decode_mock_token(token)

        if claims.get("iss") != MOCK_ISSUER:
            raise InvalidTokenError(f"Unknown token issuer: {claims.get('iss')}")

        exp = claims.get("exp", 0)
        if not isinstance(exp, (int, float)) or exp < self._clock():
            raise InvalidTokenError("Token has expired")

        if self.token_use is not None and claims.get("token_use") != self.token_use:
            raise InvalidTokenError(
                f"Invalid token_use: expected {self.token_use}, got {claims.get('token_use')}"
            )

        return VerifiedClaims.from_payload(claims)

    def get_unverified_claims(self, token: str) -> VerifiedClaims:
        """Extract claims from a token WITHOUT verifying."""
        return VerifiedClaims.from_payload(_decode_mock_token(token))
