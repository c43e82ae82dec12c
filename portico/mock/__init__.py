"""Mock implementations for local development without AWS Cognito."""

from portico.mock.factory import MockFactory
from portico.mock.identity_provider import MOCK_CONFIRMATION_CODE, MockIdentityProvider
from portico.mock.token_verifier import MockVerifier, encode_mock_token

__all__ = [
    "MOCK_CONFIRMATION_CODE",
    "MockFactory",
    "MockIdentityProvider",
    "MockVerifier",
    "encode_mock_token",
]
