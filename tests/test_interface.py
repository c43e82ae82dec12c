"""Tests for the provider interfaces."""

import pytest

from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier
from portico.mock import MockIdentityProvider, MockVerifier
from portico.cognito import CognitoIdentityProvider, CognitoVerifier


def test_identity_provider_is_abstract():
    """Test that IdentityProvider cannot be instantiated."""
    with pytest.raises(TypeError):
        IdentityProvider()


def test_identity_provider_requires_all_methods():
    """Test that a partial implementation cannot be instantiated."""

    class PartialProvider(IdentityProvider):
        async def login(self, email, password):
            return None

    with pytest.raises(TypeError):
        PartialProvider()


def test_identity_provider_operations():
    """Test the interface declares every account operation."""
    expected = {
        "create_user",
        "confirm_user",
        "resend_confirmation_code",
        "login",
        "refresh_token",
        "get_user",
        "update_attributes",
        "forgot_password",
        "confirm_forgot_password",
        "delete_user",
    }

    assert IdentityProvider.__abstractmethods__ == expected


def test_token_verifier_operations():
    """Test the verifier interface."""
    assert TokenVerifier.__abstractmethods__ == {"verify", "get_unverified_claims"}


def test_implementations():
    """Test the concrete classes implement the interfaces."""
    assert issubclass(CognitoIdentityProvider, IdentityProvider)
    assert issubclass(MockIdentityProvider, IdentityProvider)
    assert issubclass(CognitoVerifier, TokenVerifier)
    assert issubclass(MockVerifier, TokenVerifier)
