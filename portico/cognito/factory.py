"""Wiring for a single Cognito user pool."""

from typing import Optional

from portico.cognito.key_cache import DEFAULT_TTL_SECONDS, KeyCache
from portico.cognito.key_resolver import KeyResolver
from portico.core.factory import PorticoFactory
from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier


class CognitoFactory(PorticoFactory):
    """Builds the Cognito flavour of every component.

    Creates the KeyCache, KeyResolver, CognitoVerifier and
    CognitoIdentityProvider for a single user pool and app client. Every
    component is created once and shared, so the whole process uses one
    signing key cache.

    Args:
        region: AWS region where the user pool is located.
        user_pool_id: Cognito user pool id, e.g. "us-east-1_ABC123".
        client_id: App client id used for login and token checks.
        client_secret: Optional app client secret.
        endpoint_url: Alternate cognito-idp endpoint, e.g. LocalStack.
        token_use: Expected token_use claim of bearer tokens. Defaults to "access".
        jwks_ttl_seconds: Key cache TTL. Defaults to 24 hours.
        jwks_timeout_seconds: JWKS fetch timeout. Defaults to 5 seconds.
        jwks_max_staleness_seconds: Degraded-mode bound; None disables serving stale keys.
        clock_skew_seconds: Leeway for exp/nbf. Defaults to 60.

    Examples:
        >>> factory = CognitoFactory(
        ...     region="us-east-1",
        ...     user_pool_id="us-east-1_ABC123",
        ...     client_id="client123",
        ... )
        >>> gate = factory.create_auth_gate()
        >>> provider = factory.create_identity_provider()

    Note:
        AWS credentials must be configured via environment variables, AWS
        config files, or IAM roles. Token verification alone needs none.
    """

    def __init__(
        self,
        region: str,
        user_pool_id: str,
        client_id: str,
        client_secret: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        token_use: Optional[str] = "access",
        jwks_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        jwks_timeout_seconds: float = 5,
        jwks_max_staleness_seconds: Optional[int] = None,
        clock_skew_seconds: int = 60,
    ):
        self.region = region
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.endpoint_url = endpoint_url
        self.token_use = token_use
        self.jwks_ttl_seconds = jwks_ttl_seconds
        self.jwks_timeout_seconds = jwks_timeout_seconds
        self.jwks_max_staleness_seconds = jwks_max_staleness_seconds
        self.clock_skew_seconds = clock_skew_seconds

        self._key_cache: Optional[KeyCache] = None
        self._verifier: Optional[TokenVerifier] = None
        self._provider: Optional[IdentityProvider] = None

    @property
    def issuer(self) -> str:
        return f"https://cognito-idp.{self.region}.amazonaws.com/{self.user_pool_id}"

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"

    def create_key_cache(self) -> KeyCache:
        """Create or return the cached JWKS key cache."""
        if self._key_cache is None:
            self._key_cache = KeyCache(
                jwks_url=self.jwks_url,
                ttl_seconds=self.jwks_ttl_seconds,
                timeout_seconds=self.jwks_timeout_seconds,
                max_staleness_seconds=self.jwks_max_staleness_seconds,
            )
        return self._key_cache

    def create_token_verifier(self) -> TokenVerifier:
        """Create or return the cached Cognito token verifier.

        Does NOT create the identity provider or any boto3 client.
        """
        if self._verifier is None:
            from portico.cognito.token_verifier import CognitoVerifier

            self._verifier = CognitoVerifier(
                issuer=self.issuer,
                key_resolver=KeyResolver(self.create_key_cache()),
                token_use=self.token_use,
                client_id=self.client_id,
                clock_skew_seconds=self.clock_skew_seconds,
            )
        return self._verifier

    def create_identity_provider(self) -> IdentityProvider:
        """Create or return the cached Cognito identity provider."""
        if self._provider is None:
            from portico.cognito.identity_provider import CognitoIdentityProvider

            self._provider = CognitoIdentityProvider(
                region=self.region,
                user_pool_id=self.user_pool_id,
                client_id=self.client_id,
                client_secret=self.client_secret,
                endpoint_url=self.endpoint_url,
            )
        return self._provider
