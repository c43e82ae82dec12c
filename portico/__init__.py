"""Portico - authentication façade over AWS Cognito.

Portico verifies Cognito-issued JWTs against the user pool's cached
JWKS and wraps the user-account operations of the identity provider
behind a small HTTP API.

Features:
- JWKS key caching with coalesced refreshes and key-rotation handling
- RS256 token verification with issuer, expiry and token_use checks
- Authentication gate returning Authenticated or Unauthorized outcomes
- User account flows (signup, confirm, login, refresh, password reset)
- Mock provider for local development without AWS
"""

__version__ = "0.1.0"

from portico.cognito import (
    CognitoFactory,
    CognitoIdentityProvider,
    CognitoVerifier,
    KeyCache,
    KeyResolver,
)
from portico.config import Settings
from portico.core.factory import PorticoFactory, create_factory, create_factory_from_settings
from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier
from portico.exceptions import (
    CodeMismatchError,
    ConfigurationError,
    ExpiredCodeError,
    FetchError,
    IdentityProviderError,
    InvalidCredentialsError,
    InvalidParameterError,
    InvalidPasswordError,
    InvalidTokenError,
    MalformedTokenError,
    PasswordResetRequiredError,
    PorticoError,
    ProviderErrorKind,
    TokenError,
    TooManyRequestsError,
    UnknownKeyError,
    UserExistsError,
    UserNotConfirmedError,
    UserNotFoundError,
)
from portico.gate import Authenticated, AuthGate, Unauthorized, UnauthorizedReason
from portico.mock import MockFactory, MockIdentityProvider, MockVerifier
from portico.models import (
    AuthResult,
    CodeDelivery,
    KeySet,
    SigningKey,
    UserProfile,
    UserStatus,
    VerifiedClaims,
)

__all__ = [
    # Core interfaces
    "IdentityProvider",
    "TokenVerifier",
    # Factory (recommended entry point)
    "create_factory",
    "create_factory_from_settings",
    "PorticoFactory",
    "CognitoFactory",
    "MockFactory",
    "Settings",
    # Authentication gate
    "AuthGate",
    "Authenticated",
    "Unauthorized",
    "UnauthorizedReason",
    # Key cache
    "KeyCache",
    "KeyResolver",
    # Models
    "AuthResult",
    "CodeDelivery",
    "KeySet",
    "SigningKey",
    "UserProfile",
    "UserStatus",
    "VerifiedClaims",
    # Exceptions - Base
    "PorticoError",
    "ConfigurationError",
    # Exceptions - Token
    "TokenError",
    "MalformedTokenError",
    "UnknownKeyError",
    "InvalidTokenError",
    "FetchError",
    # Exceptions - Provider
    "ProviderErrorKind",
    "IdentityProviderError",
    "CodeMismatchError",
    "ExpiredCodeError",
    "InvalidCredentialsError",
    "InvalidParameterError",
    "InvalidPasswordError",
    "PasswordResetRequiredError",
    "TooManyRequestsError",
    "UserExistsError",
    "UserNotConfirmedError",
    "UserNotFoundError",
    # Implementations
    "CognitoIdentityProvider",
    "CognitoVerifier",
    "MockIdentityProvider",
    "MockVerifier",
]
