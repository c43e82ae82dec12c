"""Authentication gate for protected routes.

The gate turns token verification into an outcome value. Routes receive
either Authenticated or Unauthorized and never see which verification step
failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

import structlog

from portico.exceptions import TokenError
from portico.models import VerifiedClaims

if TYPE_CHECKING:
    from portico.core.token_verifier import TokenVerifier

log = structlog.get_logger()


class UnauthorizedReason(str, Enum):
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"


_MESSAGES = {
    UnauthorizedReason.MISSING_TOKEN: "No token provided",
    UnauthorizedReason.INVALID_TOKEN: "Invalid token",
}


@dataclass(frozen=True)
class Authenticated:
    claims: VerifiedClaims


@dataclass(frozen=True)
class Unauthorized:
    reason: UnauthorizedReason

    @property
    def message(self) -> str:
        return _MESSAGES[self.reason]


AuthOutcome = Union[Authenticated, Unauthorized]


class AuthGate:
    """Policy wrapper around a TokenVerifier.

    Args:
        verifier: The verifier used for every presented token
    """

    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier

    def authenticate(self, token: Optional[str]) -> AuthOutcome:
        """Authenticate a request's bearer token.

        Args:
            token: The raw token, or None when the request carried none

        Returns:
            Authenticated with the verified claims, or Unauthorized
        """
        if not token:
            return Unauthorized(UnauthorizedReason.MISSING_TOKEN)

        try:
            claims = self.verifier.verify(token)
        except TokenError as e:
            log.info("token_rejected", code=e.code, reason=e.message)
            return Unauthorized(UnauthorizedReason.INVALID_TOKEN)

        return Authenticated(claims)
