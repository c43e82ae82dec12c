"""Factories that wire an identity provider to a matching token verifier."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier
from portico.gate import AuthGate

if TYPE_CHECKING:
    from portico.config import Settings


class PorticoFactory(ABC):
    """Base class for the Cognito and mock component factories.

    A factory hands out one identity provider, one token verifier and one
    auth gate, each built on first use. Tokens issued by the factory's
    provider are accepted by its verifier.

    Build one with create_factory() or create_factory_from_settings():

        >>> from portico import create_factory
        >>> factory = create_factory(
        ...     "cognito",
        ...     region="eu-west-1",
        ...     user_pool_id="eu-west-1_ABC123",
        ...     client_id="client123",
        ... )
    """

    _gate: Optional[AuthGate] = None

    @abstractmethod
    def create_identity_provider(self) -> IdentityProvider:
        """Return this factory's identity provider, building it on first call."""

    @abstractmethod
    def create_token_verifier(self) -> TokenVerifier:
        """Return this factory's token verifier, building it on first call.

        Every caller gets the same instance, and so the same signing key cache.
        """

    def create_auth_gate(self) -> AuthGate:
        if self._gate is None:
            self._gate = AuthGate(self.create_token_verifier())
        return self._gate


def create_factory(provider_type: str, **kwargs) -> PorticoFactory:
    """Build the factory for ``provider_type``.

    Args:
        provider_type: "cognito" or "mock"
        **kwargs: Passed to CognitoFactory. Cognito requires region,
            user_pool_id and client_id; client_secret, endpoint_url and the
            key cache and verifier options are optional. The mock factory
            takes none.

    Raises:
        ValueError: On an unknown provider_type, missing Cognito arguments,
            or arguments given to the mock factory

    Examples:
        >>> gate = create_factory("mock").create_auth_gate()
    """
    if provider_type == "cognito":
        from portico.cognito.factory import CognitoFactory

        missing = [k for k in ("region", "user_pool_id", "client_id") if not kwargs.get(k)]
        if missing:
            raise ValueError(
                f"Missing required argument(s) {missing} for provider_type='cognito'. "
                "Example: create_factory('cognito', region='us-east-1', "
                "user_pool_id='us-east-1_ABC123', client_id='client123')"
            )
        return CognitoFactory(**kwargs)
    elif provider_type == "mock":
        from portico.mock.factory import MockFactory

        if kwargs:
            raise ValueError(f"The mock factory takes no arguments, got {sorted(kwargs)}")
        return MockFactory()
    else:
        raise ValueError(f"Unsupported provider type {provider_type!r}, expected 'cognito' or 'mock'")


def create_factory_from_settings(settings: Settings) -> PorticoFactory:
    """Create the factory described by a Settings instance."""
    if settings.provider_type == "mock":
        return create_factory("mock")
    return create_factory(
        "cognito",
        region=settings.region,
        user_pool_id=settings.user_pool_id,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        endpoint_url=settings.endpoint_url,
        token_use=settings.token_use,
        jwks_ttl_seconds=settings.jwks_ttl_seconds,
        jwks_timeout_seconds=settings.jwks_timeout_seconds,
        jwks_max_staleness_seconds=settings.jwks_max_staleness_seconds,
        clock_skew_seconds=settings.clock_skew_seconds,
    )
