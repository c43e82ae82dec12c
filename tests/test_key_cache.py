"""Tests for the JWKS key cache."""

import threading
from unittest.mock import Mock, patch

import pytest
import requests

from portico.cognito.key_cache import DEFAULT_TTL_SECONDS, KeyCache
from portico.exceptions import FetchError

JWKS_URL = "https://cognito-idp.us-east-1.amazonaws.com/us-east-1_TEST/.well-known/jwks.json"
HOUR = 60 * 60


def _cache(fetcher, clock, **kwargs) -> KeyCache:
    return KeyCache(JWKS_URL, fetcher=fetcher, clock=clock, **kwargs)


# ==================== TTL ====================


def test_default_ttl_is_one_day():
    """Test the cache defaults to a 24 hour TTL."""
    assert DEFAULT_TTL_SECONDS == 24 * HOUR
    assert KeyCache(JWKS_URL).ttl_seconds == DEFAULT_TTL_SECONDS


def test_first_call_fetches(fetcher, clock):
    """Test an empty cache fetches and stores the key set."""
    cache = _cache(fetcher, clock)
    assert cache.current is None

    key_set = cache.get_key_set()

    assert fetcher.calls == 1
    assert key_set.kids == ["key-1"]
    assert key_set.fetched_at == clock.now
    assert cache.current is key_set


def test_fresh_key_set_served_without_fetch(fetcher, clock):
    """Test a key set younger than the TTL is reused."""
    cache = _cache(fetcher, clock)
    first = cache.get_key_set()

    clock.advance(23 * HOUR)
    second = cache.get_key_set()

    assert second is first
    assert fetcher.calls == 1


def test_key_set_at_exactly_ttl_is_fresh(fetcher, clock):
    """Test a key set exactly TTL old is still served."""
    cache = _cache(fetcher, clock, ttl_seconds=60)
    first = cache.get_key_set()

    clock.advance(60)

    assert cache.get_key_set() is first
    assert fetcher.calls == 1


def test_expired_key_set_is_refetched(fetcher, clock):
    """Test a key set older than the TTL triggers one fetch."""
    cache = _cache(fetcher, clock)
    first = cache.get_key_set()

    clock.advance(DEFAULT_TTL_SECONDS + 1)
    second = cache.get_key_set()

    assert fetcher.calls == 2
    assert second is not first
    assert second.fetched_at == clock.now


# ==================== Forced Refresh ====================


def test_force_refresh_ignores_ttl(fetcher, clock):
    """Test force_refresh fetches even when the held set is fresh."""
    cache = _cache(fetcher, clock)
    first = cache.get_key_set()

    second = cache.force_refresh(observed=first)

    assert fetcher.calls == 2
    assert second is not first
    assert cache.current is second


def test_force_refresh_reuses_newer_key_set(fetcher, clock):
    """Test force_refresh skips the fetch when another caller already replaced the set."""
    cache = _cache(fetcher, clock)
    stale_view = cache.get_key_set()
    newer = cache.force_refresh(observed=stale_view)

    result = cache.force_refresh(observed=stale_view)

    assert result is newer
    assert fetcher.calls == 2


def test_concurrent_refreshes_coalesce(fetcher, clock):
    """Test callers racing on an empty cache share a single fetch."""
    fetcher.delay = 0.2
    cache = _cache(fetcher, clock)
    barrier = threading.Barrier(4)
    results = []

    def worker():
        barrier.wait()
        results.append(cache.get_key_set())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert fetcher.calls == 1
    assert len(results) == 4
    assert all(result is results[0] for result in results)


def _race(cache: KeyCache, workers: int = 4) -> list:
    barrier = threading.Barrier(workers)
    outcomes = []

    def worker():
        barrier.wait()
        try:
            outcomes.append(cache.get_key_set())
        except FetchError as e:
            outcomes.append(e)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


def test_concurrent_refreshes_of_stale_cache_coalesce(fetcher, clock):
    """Test callers racing on an expired key set share a single fetch."""
    cache = _cache(fetcher, clock)
    first = cache.get_key_set()
    clock.advance(DEFAULT_TTL_SECONDS + 1)
    fetcher.delay = 0.2

    outcomes = _race(cache)

    assert fetcher.calls == 2
    assert all(outcome is cache.current for outcome in outcomes)
    assert cache.current is not first


def test_concurrent_failed_refresh_serves_stale_once(fetcher, clock):
    """Test callers racing on a failing endpoint share one attempt and get the stale set."""
    cache = _cache(fetcher, clock, max_staleness_seconds=48 * HOUR)
    first = cache.get_key_set()
    clock.advance(DEFAULT_TTL_SECONDS + 1)
    fetcher.delay = 0.2
    fetcher.error = requests.Timeout("timed out")

    outcomes = _race(cache)

    assert fetcher.calls == 2
    assert all(outcome is first for outcome in outcomes)


def test_concurrent_failed_refresh_raises_once_fetched(fetcher, clock):
    """Test callers racing on a failing endpoint all fail after a single attempt."""
    cache = _cache(fetcher, clock)
    cache.get_key_set()
    clock.advance(DEFAULT_TTL_SECONDS + 1)
    fetcher.delay = 0.2
    fetcher.error = requests.Timeout("timed out")

    outcomes = _race(cache)

    assert fetcher.calls == 2
    assert len(outcomes) == 4
    assert all(isinstance(outcome, FetchError) for outcome in outcomes)
    assert all("timed out" in outcome.message for outcome in outcomes)


# ==================== Retry Back-off ====================


def test_failure_is_reused_within_backoff(fetcher, clock):
    """Test calls soon after a failed fetch do not hit the endpoint again."""
    fetcher.error = requests.ConnectionError("connection refused")
    cache = _cache(fetcher, clock, retry_backoff_seconds=5)

    for _ in range(3):
        with pytest.raises(FetchError):
            cache.get_key_set()

    assert fetcher.calls == 1


def test_fetch_retried_after_backoff(fetcher, clock):
    """Test a fetch is attempted again once the back-off has elapsed."""
    fetcher.error = requests.ConnectionError("connection refused")
    cache = _cache(fetcher, clock, retry_backoff_seconds=5)
    with pytest.raises(FetchError):
        cache.get_key_set()

    clock.advance(6)
    fetcher.error = None
    key_set = cache.get_key_set()

    assert fetcher.calls == 2
    assert key_set.kids == ["key-1"]


def test_force_refresh_within_backoff_reuses_failure(fetcher, clock):
    """Test an unknown-kid refresh during an outage fails without fetching."""
    cache = _cache(fetcher, clock, max_staleness_seconds=48 * HOUR)
    first = cache.get_key_set()
    fetcher.error = requests.ConnectionError("connection refused")
    with pytest.raises(FetchError):
        cache.force_refresh(observed=first)

    with pytest.raises(FetchError):
        cache.force_refresh(observed=first)

    assert fetcher.calls == 2
    assert cache.current is first


def test_success_clears_failure(fetcher, clock):
    """Test a successful fetch ends the back-off."""
    cache = _cache(fetcher, clock, retry_backoff_seconds=5)
    fetcher.error = requests.ConnectionError("connection refused")
    with pytest.raises(FetchError):
        cache.get_key_set()
    clock.advance(6)
    fetcher.error = None
    first = cache.get_key_set()

    second = cache.force_refresh(observed=first)

    assert fetcher.calls == 3
    assert second is not first


# ==================== Fetch Failures ====================


def test_fetch_error_without_cached_keys(fetcher, clock):
    """Test a failed first fetch raises FetchError."""
    fetcher.error = requests.ConnectionError("connection refused")
    cache = _cache(fetcher, clock, max_staleness_seconds=48 * HOUR)

    with pytest.raises(FetchError) as exc_info:
        cache.get_key_set()

    assert exc_info.value.url == JWKS_URL
    assert exc_info.value.code == "JWKS_FETCH_FAILED"
    assert cache.current is None


def test_expired_key_set_not_served_when_staleness_disabled(fetcher, clock):
    """Test a failed TTL refresh raises when stale serving is disabled."""
    cache = _cache(fetcher, clock)
    cache.get_key_set()

    clock.advance(DEFAULT_TTL_SECONDS + 1)
    fetcher.error = requests.Timeout("timed out")

    with pytest.raises(FetchError):
        cache.get_key_set()


def test_stale_key_set_served_within_bound(fetcher, clock):
    """Test a failed TTL refresh serves the held set while within max staleness."""
    cache = _cache(fetcher, clock, max_staleness_seconds=48 * HOUR)
    first = cache.get_key_set()

    clock.advance(30 * HOUR)
    fetcher.error = requests.ConnectionError("connection refused")

    assert cache.get_key_set() is first
    assert fetcher.calls == 2


def test_stale_key_set_rejected_beyond_bound(fetcher, clock):
    """Test a held set older than max staleness is not served."""
    cache = _cache(fetcher, clock, max_staleness_seconds=48 * HOUR)
    cache.get_key_set()

    clock.advance(49 * HOUR)
    fetcher.error = requests.ConnectionError("connection refused")

    with pytest.raises(FetchError):
        cache.get_key_set()


def test_force_refresh_never_serves_stale(fetcher, clock):
    """Test a failed forced refresh raises even when stale serving is enabled."""
    cache = _cache(fetcher, clock, max_staleness_seconds=48 * HOUR)
    first = cache.get_key_set()
    fetcher.error = requests.ConnectionError("connection refused")

    with pytest.raises(FetchError):
        cache.force_refresh(observed=first)

    assert cache.current is first


def test_failed_refresh_keeps_previous_key_set(fetcher, clock):
    """Test a failed fetch does not clear the held key set."""
    cache = _cache(fetcher, clock)
    first = cache.get_key_set()
    clock.advance(DEFAULT_TTL_SECONDS + 1)
    fetcher.error = requests.ConnectionError("connection refused")

    with pytest.raises(FetchError):
        cache.get_key_set()

    assert cache.current is first


@pytest.mark.parametrize(
    "document",
    [
        {"not_keys": []},
        {"keys": "nope"},
        {"keys": [{"kty": "RSA"}]},
        ["keys"],
    ],
)
def test_unusable_document_raises_fetch_error(fetcher, clock, document):
    """Test documents without the JWKS shape are rejected."""
    fetcher.document = document
    cache = _cache(fetcher, clock)

    with pytest.raises(FetchError):
        cache.get_key_set()


def test_invalid_json_raises_fetch_error(fetcher, clock):
    """Test a body that is not JSON surfaces as FetchError."""
    fetcher.error = ValueError("Expecting value: line 1 column 1 (char 0)")
    cache = _cache(fetcher, clock)

    with pytest.raises(FetchError):
        cache.get_key_set()


# ==================== HTTP Fetcher ====================


def test_default_fetcher_uses_requests(jwks):
    """Test the default fetcher GETs the JWKS URL with the configured timeout."""
    response = Mock()
    response.json.return_value = jwks

    with patch("portico.cognito.key_cache.requests.get", return_value=response) as get:
        key_set = KeyCache(JWKS_URL, timeout_seconds=3).get_key_set()

    get.assert_called_once_with(JWKS_URL, timeout=3)
    response.raise_for_status.assert_called_once()
    assert key_set.kids == ["key-1"]


def test_default_fetcher_http_error():
    """Test a non-2xx JWKS response raises FetchError."""
    response = Mock()
    response.raise_for_status.side_effect = requests.HTTPError("503 Server Error")

    with patch("portico.cognito.key_cache.requests.get", return_value=response):
        with pytest.raises(FetchError) as exc_info:
            KeyCache(JWKS_URL).get_key_set()

    assert "503" in exc_info.value.message
