"""Core abstractions for the Portico identity façade."""

from portico.core.factory import PorticoFactory, create_factory, create_factory_from_settings
from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier

__all__ = [
    "IdentityProvider",
    "TokenVerifier",
    "PorticoFactory",
    "create_factory",
    "create_factory_from_settings",
]
