"""Signing key lookup by key identifier."""

from __future__ import annotations

import structlog

from portico.cognito.key_cache import KeyCache
from portico.exceptions import UnknownKeyError
from portico.models import SigningKey

log = structlog.get_logger()


class KeyResolver:
    """Finds the signing key for a token's kid.

    A kid missing from the cached KeySet forces one refresh before giving up,
    so provider key rotation is picked up without waiting for the TTL.

    Args:
        key_cache: The cache holding the provider's KeySet
    """

    def __init__(self, key_cache: KeyCache):
        self.key_cache = key_cache

    def resolve(self, kid: str) -> SigningKey:
        """Return the signing key whose identifier is ``kid``.

        Raises:
            UnknownKeyError: If the kid is absent even after a forced refresh
            FetchError: If the key set cannot be fetched
        """
        key_set = self.key_cache.get_key_set()
        key = key_set.find(kid)

        if key is None:
            # Key not found - force refresh (handles key rotation)
            log.debug("key_not_found_refreshing", kid=kid, jwks_url=self.key_cache.jwks_url)
            key_set = self.key_cache.force_refresh(observed=key_set)
            key = key_set.find(kid)

        if key is None:
            log.warning("signing_key_not_found", kid=kid, available_kids=key_set.kids)
            raise UnknownKeyError(kid)

        return key
