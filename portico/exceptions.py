"""Portico exceptions.

All exceptions inherit from PorticoError for easy catching.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class PorticoError(Exception):
    """Base exception for Portico errors."""

    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(PorticoError):
    """Raised when required settings are missing or invalid."""

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFIGURATION_ERROR")


# ==================== Token Errors ====================


class TokenError(PorticoError):
    """Base class for bearer token verification failures."""


class MalformedTokenError(TokenError):
    """Raised when a token cannot be structurally decoded."""

    def __init__(self, message: str = "Malformed token"):
        super().__init__(message=message, code="MALFORMED_TOKEN")


class UnknownKeyError(TokenError):
    """Raised when no signing key matches the token's kid, even after a refresh."""

    def __init__(self, kid: str):
        super().__init__(
            message=f"Signing key not found for kid: {kid}",
            code="UNKNOWN_KEY",
        )
        self.kid = kid


class InvalidTokenError(TokenError):
    """Raised when signature, issuer, algorithm or time claims do not hold."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, code="INVALID_TOKEN")


class FetchError(TokenError):
    """Raised when the JWKS endpoint is unreachable or returns unusable data."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message=message, code="JWKS_FETCH_FAILED")
        self.url = url


# ==================== Identity Provider Errors ====================


class ProviderErrorKind(str, Enum):
    """Categories of identity provider failures."""

    USER_NOT_CONFIRMED = "USER_NOT_CONFIRMED"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    PASSWORD_RESET_REQUIRED = "PASSWORD_RESET_REQUIRED"
    USER_EXISTS = "USER_EXISTS"
    CODE_MISMATCH = "CODE_MISMATCH"
    EXPIRED_CODE = "EXPIRED_CODE"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    UNKNOWN = "UNKNOWN"


class IdentityProviderError(PorticoError):
    """Raised when an identity provider operation fails.

    Args:
        message: Human readable description
        operation: The provider operation that failed (e.g. "login")
        kind: Category of the failure, used by callers to pick a response
        provider_code: The provider's own exception name, if any
    """

    kind = ProviderErrorKind.UNKNOWN
    default_message = "Identity provider request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        operation: str = "unknown",
        provider_code: Optional[str] = None,
        kind: Optional[ProviderErrorKind] = None,
    ):
        if kind is not None:
            self.kind = kind
        super().__init__(message=message or self.default_message, code=self.kind.value)
        self.operation = operation
        self.provider_code = provider_code


class UserNotConfirmedError(IdentityProviderError):
    """Raised when the user has not confirmed their account."""

    kind = ProviderErrorKind.USER_NOT_CONFIRMED
    default_message = "User not confirmed. Please check your email for a verification link."


class InvalidCredentialsError(IdentityProviderError):
    """Raised when the provider rejects credentials or tokens."""

    kind = ProviderErrorKind.NOT_AUTHORIZED
    default_message = "Incorrect username or password. Please verify your credentials."


class UserNotFoundError(IdentityProviderError):
    """Raised when the user does not exist."""

    kind = ProviderErrorKind.USER_NOT_FOUND
    default_message = "User not found. Please register or check your email address."


class PasswordResetRequiredError(IdentityProviderError):
    """Raised when the user must reset their password before logging in."""

    kind = ProviderErrorKind.PASSWORD_RESET_REQUIRED
    default_message = "Password reset required. Please reset your password before logging in."


class UserExistsError(IdentityProviderError):
    """Raised when signing up with an email that is already registered."""

    kind = ProviderErrorKind.USER_EXISTS
    default_message = "An account with this email already exists."


class CodeMismatchError(IdentityProviderError):
    """Raised when a confirmation or reset code is wrong."""

    kind = ProviderErrorKind.CODE_MISMATCH
    default_message = "Invalid verification code provided, please try again."


class ExpiredCodeError(IdentityProviderError):
    """Raised when a confirmation or reset code has expired."""

    kind = ProviderErrorKind.EXPIRED_CODE
    default_message = "Verification code has expired, please request a new one."


class InvalidPasswordError(IdentityProviderError):
    """Raised when a password does not meet the pool's policy."""

    kind = ProviderErrorKind.INVALID_PASSWORD
    default_message = "Password does not meet requirements"


class InvalidParameterError(IdentityProviderError):
    """Raised when the provider rejects a request parameter."""

    kind = ProviderErrorKind.INVALID_PARAMETER
    default_message = "Invalid request parameters"


class TooManyRequestsError(IdentityProviderError):
    """Raised when the provider rate limits the caller."""

    kind = ProviderErrorKind.TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


ERRORS_BY_KIND: dict[ProviderErrorKind, type[IdentityProviderError]] = {
    ProviderErrorKind.USER_NOT_CONFIRMED: UserNotConfirmedError,
    ProviderErrorKind.NOT_AUTHORIZED: InvalidCredentialsError,
    ProviderErrorKind.USER_NOT_FOUND: UserNotFoundError,
    ProviderErrorKind.PASSWORD_RESET_REQUIRED: PasswordResetRequiredError,
    ProviderErrorKind.USER_EXISTS: UserExistsError,
    ProviderErrorKind.CODE_MISMATCH: CodeMismatchError,
    ProviderErrorKind.EXPIRED_CODE: ExpiredCodeError,
    ProviderErrorKind.INVALID_PASSWORD: InvalidPasswordError,
    ProviderErrorKind.INVALID_PARAMETER: InvalidParameterError,
    ProviderErrorKind.TOO_MANY_REQUESTS: TooManyRequestsError,
    ProviderErrorKind.UNKNOWN: IdentityProviderError,
}
