"""Tests for portico exceptions."""

import pytest

from portico.exceptions import (
    ERRORS_BY_KIND,
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


# ==================== Base ====================


def test_portico_error():
    """Test base error carries message and code."""
    error = PorticoError("Something went wrong", "TEST_ERROR")

    assert error.message == "Something went wrong"
    assert error.code == "TEST_ERROR"
    assert str(error) == "Something went wrong"


def test_configuration_error():
    """Test ConfigurationError code."""
    error = ConfigurationError("Missing required settings: AWS_REGION")

    assert isinstance(error, PorticoError)
    assert error.code == "CONFIGURATION_ERROR"


# ==================== Token Errors ====================


def test_malformed_token_error():
    """Test MalformedTokenError defaults."""
    error = MalformedTokenError()

    assert isinstance(error, TokenError)
    assert error.message == "Malformed token"
    assert error.code == "MALFORMED_TOKEN"


def test_unknown_key_error():
    """Test UnknownKeyError keeps the kid."""
    error = UnknownKeyError("abc123")

    assert isinstance(error, TokenError)
    assert error.kid == "abc123"
    assert "abc123" in error.message
    assert error.code == "UNKNOWN_KEY"


def test_invalid_token_error():
    """Test InvalidTokenError defaults and custom message."""
    assert InvalidTokenError().message == "Invalid token"
    assert InvalidTokenError("Token has expired").message == "Token has expired"
    assert InvalidTokenError().code == "INVALID_TOKEN"


def test_fetch_error():
    """Test FetchError keeps the JWKS URL."""
    error = FetchError("Failed to fetch JWKS", "https://example.com/jwks.json")

    assert isinstance(error, TokenError)
    assert error.url == "https://example.com/jwks.json"
    assert error.code == "JWKS_FETCH_FAILED"


# ==================== Identity Provider Errors ====================


def test_identity_provider_error_defaults():
    """Test the base provider error is the UNKNOWN kind."""
    error = IdentityProviderError()

    assert error.kind == ProviderErrorKind.UNKNOWN
    assert error.code == "UNKNOWN"
    assert error.operation == "unknown"
    assert error.provider_code is None
    assert error.message == "Identity provider request failed"


def test_identity_provider_error_kind_override():
    """Test an explicit kind overrides the class kind."""
    error = IdentityProviderError(
        "Slow down", operation="login", kind=ProviderErrorKind.TOO_MANY_REQUESTS
    )

    assert error.kind == ProviderErrorKind.TOO_MANY_REQUESTS
    assert error.code == "TOO_MANY_REQUESTS"
    assert IdentityProviderError.kind == ProviderErrorKind.UNKNOWN


@pytest.mark.parametrize(
    "error_class,kind",
    [
        (UserNotConfirmedError, ProviderErrorKind.USER_NOT_CONFIRMED),
        (InvalidCredentialsError, ProviderErrorKind.NOT_AUTHORIZED),
        (UserNotFoundError, ProviderErrorKind.USER_NOT_FOUND),
        (PasswordResetRequiredError, ProviderErrorKind.PASSWORD_RESET_REQUIRED),
        (UserExistsError, ProviderErrorKind.USER_EXISTS),
        (CodeMismatchError, ProviderErrorKind.CODE_MISMATCH),
        (ExpiredCodeError, ProviderErrorKind.EXPIRED_CODE),
        (InvalidPasswordError, ProviderErrorKind.INVALID_PASSWORD),
        (InvalidParameterError, ProviderErrorKind.INVALID_PARAMETER),
        (TooManyRequestsError, ProviderErrorKind.TOO_MANY_REQUESTS),
    ],
)
def test_provider_error_kinds(error_class, kind):
    """Test each provider error subclass is tagged with its kind."""
    error = error_class(operation="login", provider_code="SomeException")

    assert isinstance(error, IdentityProviderError)
    assert error.kind == kind
    assert error.code == kind.value
    assert error.message == error_class.default_message
    assert ERRORS_BY_KIND[kind] is error_class


def test_errors_by_kind_covers_every_kind():
    """Test every kind maps to an error class."""
    assert set(ERRORS_BY_KIND) == set(ProviderErrorKind)


def test_user_not_confirmed_message():
    """Test the user facing message for unconfirmed accounts."""
    assert UserNotConfirmedError().message == (
        "User not confirmed. Please check your email for a verification link."
    )


def test_catch_all_portico_errors():
    """Test catching all errors with base class."""
    errors = [
        MalformedTokenError(),
        UnknownKeyError("kid"),
        FetchError("down"),
        UserNotFoundError(),
        ConfigurationError("bad"),
    ]

    for error in errors:
        with pytest.raises(PorticoError):
            raise error
