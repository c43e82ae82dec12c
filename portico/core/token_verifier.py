"""Token verifier interface shared by the Cognito and mock verifiers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from portico.models import VerifiedClaims


class TokenVerifier(ABC):
    """Turns a raw bearer token into VerifiedClaims or raises a TokenError.

    CognitoVerifier checks RS256 signatures against the user pool's JWKS.
    MockVerifier accepts the tokens MockIdentityProvider issues.
    """

    @abstractmethod
    def verify(self, token: str) -> VerifiedClaims:
        """Check a token and return its claims.

        Args:
            token: The raw token, with any "Bearer " prefix already removed

        Raises:
            MalformedTokenError: The token cannot be decoded or lacks a kid
            UnknownKeyError: No published key has the token's kid
            InvalidTokenError: A signature, algorithm, issuer, expiry,
                token_use or client check failed
            FetchError: The signing keys could not be fetched
        """

    @abstractmethod
    def get_unverified_claims(self, token: str) -> VerifiedClaims:
        """Decode a token's claims with no checks at all.

        The result is for logging and diagnostics only and must not drive an
        authentication decision.

        Raises:
            MalformedTokenError: If the token cannot be decoded
        """
