"""In-memory components for tests and local development."""

from typing import Optional

from portico.core.factory import PorticoFactory
from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier


class MockFactory(PorticoFactory):
    """Builds a MockIdentityProvider and a MockVerifier that accepts its tokens.

    Nothing here talks to AWS, so the API can be run and tested without a
    user pool. There is nothing to configure.

    Examples:
        >>> factory = MockFactory()
        >>> accounts = factory.create_identity_provider()
        >>> await accounts.create_user("a@example.com", "password1", "Ada", "Lovelace")
        >>> await accounts.confirm_user("a@example.com", MOCK_CONFIRMATION_CODE)
        >>> tokens = await accounts.login("a@example.com", "password1")
        >>> factory.create_auth_gate().authenticate(tokens.access_token)
    """

    def __init__(self) -> None:
        self._accounts: Optional[IdentityProvider] = None
        self._mock_verifier: Optional[TokenVerifier] = None

    def create_identity_provider(self) -> IdentityProvider:
        if self._accounts is None:
            from portico.mock.identity_provider import MockIdentityProvider

            self._accounts = MockIdentityProvider()
        return self._accounts

    def create_token_verifier(self) -> TokenVerifier:
        if self._mock_verifier is None:
            from portico.mock.token_verifier import MockVerifier

            self._mock_verifier = MockVerifier()
        return self._mock_verifier
