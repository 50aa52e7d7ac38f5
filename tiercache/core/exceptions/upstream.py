"""
Upstream Fetch Exceptions

Raised by CachedFetcher when the upstream call fails and no cached value,
fresh or stale, can stand in for it.
"""

from tiercache.core.exceptions.base import TierCacheError


class UpstreamFetchError(TierCacheError):
    """
    Raised when an upstream fetch fails.

    Upstream callables may raise this themselves to mark a failure as
    network-level, which makes it eligible for the stale-value fallback.
    """
    pass


class UpstreamTimeoutError(UpstreamFetchError):
    """Raised when an upstream fetch exceeds UPSTREAM_FETCH_TIMEOUT."""
    pass
