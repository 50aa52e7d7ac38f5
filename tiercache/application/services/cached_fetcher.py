"""
Cached Fetcher Service

Read-through wrapper around an upstream call:

    force_refresh? -> delete key
    fresh cached value? -> return it
    fetch upstream (raced against UPSTREAM_FETCH_TIMEOUT) -> cache -> return
    on network-level failure -> stale cached value if any, else raise

Only timeouts and network-level errors are masked by stale data. Anything
else (bad payload, programming error) surfaces as UpstreamFetchError even
when an old value exists.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from tiercache.core.config.settings import Settings, get_settings
from tiercache.core.exceptions import UpstreamFetchError, UpstreamTimeoutError
from tiercache.core.logging import get_logger, log_stage
from tiercache.infrastructure.cache.cache_manager import CacheManager

logger = get_logger(__name__)

V = TypeVar("V")

# Errors that make a stale value an acceptable answer
STALE_ELIGIBLE_ERRORS = (TimeoutError, OSError, UpstreamFetchError)


class CachedFetcher(Generic[V]):
    """
    Serve values from the cache, falling back to an upstream fetch.

    Only TimeoutError, OSError and UpstreamFetchError make a stale value an
    acceptable answer. HTTP client transport errors (httpx.ConnectError and
    friends) do not subclass OSError, so fetch_fn must translate them into
    UpstreamFetchError to get the stale fallback.

    Usage:
        fetcher = CachedFetcher(cache)
        block = await fetcher.fetch(
            CacheManager.generate_cache_key("block", height),
            lambda: client.get_block(height),
            ttl=600,
        )
    """

    def __init__(self, cache: CacheManager[V], settings: Settings | None = None):
        self._cache = cache
        settings = settings or get_settings()
        self._timeout = settings.upstream.UPSTREAM_FETCH_TIMEOUT

    async def fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[V]],
        ttl: float | None = None,
        force_refresh: bool = False,
    ) -> V:
        """
        Get ``key`` from the cache or from ``fetch_fn``.

        STAGE-FETCH

        Args:
            key: Cache key
            fetch_fn: Zero-argument coroutine function calling the upstream
            ttl: Freshness window and Redis expiry (defaults to the cache's
                 CACHE_DEFAULT_TTL)
            force_refresh: Drop the cached value before fetching

        Returns:
            Fresh cached value, upstream value, or stale value after a
            network-level upstream failure

        Raises:
            UpstreamTimeoutError: Upstream timed out and nothing is cached
            UpstreamFetchError: Upstream failed and no stale value may be used
        """
        if force_refresh:
            log_stage(logger, "FETCH.REFRESH", "Forced refresh, dropping cached value", cache_key=key)
            await self._cache.delete(key)
        else:
            cached = await self._cache.get(key, ttl)
            if cached is not None:
                return cached

        try:
            value = await asyncio.wait_for(fetch_fn(), timeout=self._timeout)
        except STALE_ELIGIBLE_ERRORS as e:
            stale = await self._cache.get_ignoring_ttl(key)
            if stale is not None:
                self._cache.observer.record_stale_fallback(key, e)
                return stale
            if isinstance(e, UpstreamFetchError):
                raise
            raise self._wrap(key, e) from e
        except Exception as e:
            raise self._wrap(key, e) from e

        await self._cache.set(key, value, ttl)
        log_stage(logger, "FETCH.1", "Fetched from upstream and cached", level="debug", cache_key=key)
        return value

    def _wrap(self, key: str, error: BaseException) -> UpstreamFetchError:
        if isinstance(error, TimeoutError):
            return UpstreamTimeoutError.from_exception(
                error,
                message=f"Upstream fetch for {key} timed out after {self._timeout}s",
                key=key,
                timeout_seconds=self._timeout,
            )
        return UpstreamFetchError.from_exception(
            error, message=f"Upstream fetch failed for {key}: {error}", key=key
        )
