"""JWKS key cache.

Holds the most recently fetched KeySet for one JWKS URL and refreshes it when
it is older than the TTL. Refreshes are serialized by a lock. Callers that
waited on the lock reuse the outcome of the attempt made by the caller that
held it, whether that is a new KeySet or a failure.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
import structlog

from portico.exceptions import FetchError
from portico.models import KeySet

log = structlog.get_logger()

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_RETRY_BACKOFF_SECONDS = 5

Fetcher = Callable[[], Any]
Clock = Callable[[], float]


@dataclass(frozen=True)
class _Failure:
    at: float
    error: FetchError


class KeyCache:
    """Cache of the signing keys published at a JWKS URL.

    Args:
        jwks_url: The provider's JWKS endpoint
        ttl_seconds: Maximum age of a served KeySet before a refresh is attempted.
            Defaults to 24 hours.
        timeout_seconds: Timeout for the JWKS HTTP request.
        max_staleness_seconds: When a TTL refresh fails, a held KeySet no older
            than this is served instead of failing. None disables stale serving.
        retry_backoff_seconds: After a failed fetch, refreshes within this window
            reuse the failure instead of fetching again.
        fetcher: Zero-argument callable returning the JWKS document. Defaults to
            an HTTP GET of jwks_url.
        clock: Returns the current time in seconds. Defaults to time.time.
    """

    def __init__(
        self,
        jwks_url: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        timeout_seconds: float = 5,
        max_staleness_seconds: Optional[int] = None,
        retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        fetcher: Optional[Fetcher] = None,
        clock: Clock = time.time,
    ):
        self.jwks_url = jwks_url
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.max_staleness_seconds = max_staleness_seconds
        self.retry_backoff_seconds = retry_backoff_seconds
        self._fetcher = fetcher or self._http_fetch
        self._clock = clock

        self._key_set: Optional[KeySet] = None
        # Bumped by every completed fetch attempt
        self._generation = 0
        self._last_failure: Optional[_Failure] = None
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[KeySet]:
        """The held KeySet, without triggering a fetch."""
        return self._key_set

    def get_key_set(self) -> KeySet:
        """Return a KeySet no older than the TTL, fetching one if needed.

        Raises:
            FetchError: If a fetch is needed and fails (and no stale KeySet may be served)
        """
        generation = self._generation
        key_set = self._key_set
        if key_set is not None and not self._is_expired(key_set):
            return key_set
        return self._refresh(observed=key_set, generation=generation, allow_stale=True)

    def force_refresh(self, observed: Optional[KeySet]) -> KeySet:
        """Fetch a new KeySet regardless of the TTL.

        Args:
            observed: The KeySet the caller last saw. If the held KeySet has
                been replaced since, it is returned without another fetch.

        Raises:
            FetchError: If the fetch fails
        """
        return self._refresh(observed=observed, generation=self._generation, allow_stale=False)

    def _is_expired(self, key_set: KeySet) -> bool:
        return key_set.age(self._clock()) > self.ttl_seconds

    def _refresh(self, observed: Optional[KeySet], generation: int, allow_stale: bool) -> KeySet:
        with self._lock:
            current = self._key_set
            if current is not None and current is not observed and not self._is_expired(current):
                # Another caller refreshed while we waited for the lock
                return current

            failure = self._last_failure
            if failure is not None and (
                self._generation != generation
                or self._clock() - failure.at < self.retry_backoff_seconds
            ):
                # The last attempt failed after we arrived, or too recently to retry
                log.debug("jwks_refresh_skipped", jwks_url=self.jwks_url, error=failure.error.message)
                error = FetchError(failure.error.message, failure.error.url)
                return self._fallback(current, error, allow_stale)

            try:
                document = self._fetcher()
                key_set = KeySet.from_jwks(document, fetched_at=self._clock())
            except FetchError as e:
                return self._fallback(current, self._record_failure(e), allow_stale)
            except (requests.RequestException, ValueError) as e:
                error = FetchError(f"Failed to fetch JWKS: {e}", self.jwks_url)
                return self._fallback(current, self._record_failure(error), allow_stale)

            self._key_set = key_set
            self._generation += 1
            self._last_failure = None
            log.debug("jwks_cached", jwks_url=self.jwks_url, key_count=len(key_set.keys))
            return key_set

    def _record_failure(self, error: FetchError) -> FetchError:
        self._generation += 1
        self._last_failure = _Failure(at=self._clock(), error=error)
        return error

    def _fallback(self, current: Optional[KeySet], error: FetchError, allow_stale: bool) -> KeySet:
        if (
            allow_stale
            and current is not None
            and self.max_staleness_seconds is not None
            and current.age(self._clock()) <= self.max_staleness_seconds
        ):
            log.warning(
                "jwks_serving_stale",
                jwks_url=self.jwks_url,
                age_seconds=int(current.age(self._clock())),
                error=error.message,
            )
            return current
        log.error("jwks_fetch_failed", jwks_url=self.jwks_url, error=error.message)
        raise error

    def _http_fetch(self) -> Any:
        resp = requests.get(self.jwks_url, timeout=self.timeout_seconds)
        resp.raise_for_status()
        return resp.json()
