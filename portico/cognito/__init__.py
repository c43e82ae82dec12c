"""AWS Cognito implementation of the Portico components."""

from portico.cognito.factory import CognitoFactory
from portico.cognito.identity_provider import CognitoIdentityProvider
from portico.cognito.key_cache import KeyCache
from portico.cognito.key_resolver import KeyResolver
from portico.cognito.token_verifier import CognitoVerifier

__all__ = [
    "CognitoFactory",
    "CognitoIdentityProvider",
    "CognitoVerifier",
    "KeyCache",
    "KeyResolver",
]
