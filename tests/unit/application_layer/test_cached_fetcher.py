"""
Unit Tests for CachedFetcher

Read-through fetch with stale-on-error fallback.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from tests.test_fixtures import CacheTestFactory
from tiercache.application.services.cached_fetcher import CachedFetcher
from tiercache.core.exceptions import UpstreamFetchError, UpstreamTimeoutError


@pytest.fixture
def fetcher(local_cache):
    return CachedFetcher(local_cache, settings=CacheTestFactory.settings(UPSTREAM_FETCH_TIMEOUT=0.05))


@pytest.mark.unit
class TestCachedFetcher:
    """Test cache-first fetching."""

    @pytest.mark.asyncio
    async def test_miss_fetches_and_caches(self, fetcher, local_cache):
        upstream = AsyncMock(return_value={"height": 1})

        result = await fetcher.fetch("block", upstream, ttl=60)

        assert result == {"height": 1}
        assert await local_cache.get("block", ttl=60) == {"height": 1}
        upstream.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fresh_hit_skips_upstream(self, fetcher, local_cache):
        await local_cache.set("block", "cached", ttl=60)
        upstream = AsyncMock(return_value="fresh")

        assert await fetcher.fetch("block", upstream, ttl=60) == "cached"
        upstream.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_entry_refetched(self, fetcher, local_cache, clock):
        await local_cache.set("block", "old", ttl=60)
        clock.advance(61)

        assert await fetcher.fetch("block", AsyncMock(return_value="new"), ttl=60) == "new"

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache(self, fetcher, local_cache):
        await local_cache.set("block", "cached", ttl=60)

        result = await fetcher.fetch("block", AsyncMock(return_value="new"), ttl=60, force_refresh=True)

        assert result == "new"
        assert await local_cache.get("block", ttl=60) == "new"

    @pytest.mark.asyncio
    async def test_network_error_serves_stale(self, fetcher, local_cache, clock):
        await local_cache.set("block", "old", ttl=60)
        clock.advance(600)

        result = await fetcher.fetch("block", AsyncMock(side_effect=ConnectionError("reset")), ttl=60)

        assert result == "old"
        assert local_cache.observer.get_stats()["stale_fallbacks"] == 1

    @pytest.mark.asyncio
    async def test_timeout_serves_stale(self, fetcher, local_cache, clock):
        await local_cache.set("block", "old", ttl=60)
        clock.advance(600)

        async def slow():
            await asyncio.sleep(1)
            return "late"

        assert await fetcher.fetch("block", slow, ttl=60) == "old"

    @pytest.mark.asyncio
    async def test_timeout_without_stale_raises(self, fetcher):
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await fetcher.fetch("block", slow, ttl=60)

        assert exc_info.value.details["key"] == "block"

    @pytest.mark.asyncio
    async def test_network_error_without_stale_raises(self, fetcher):
        with pytest.raises(UpstreamFetchError) as exc_info:
            await fetcher.fetch("block", AsyncMock(side_effect=OSError("unreachable")), ttl=60)

        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_upstream_fetch_error_is_stale_eligible(self, fetcher, local_cache, clock):
        await local_cache.set("block", "old", ttl=60)
        clock.advance(600)

        result = await fetcher.fetch(
            "block", AsyncMock(side_effect=UpstreamFetchError("502 from upstream")), ttl=60
        )

        assert result == "old"

    @pytest.mark.asyncio
    async def test_other_errors_not_masked_by_stale(self, fetcher, local_cache, clock):
        await local_cache.set("block", "old", ttl=60)
        clock.advance(600)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await fetcher.fetch("block", AsyncMock(side_effect=KeyError("height")), ttl=60)

        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_force_refresh_has_no_stale_fallback(self, fetcher, local_cache):
        await local_cache.set("block", "old", ttl=60)

        with pytest.raises(UpstreamFetchError):
            await fetcher.fetch(
                "block", AsyncMock(side_effect=ConnectionError("reset")), ttl=60, force_refresh=True
            )

    @pytest.mark.asyncio
    async def test_translated_transport_error_serves_stale(self, fetcher, local_cache, clock):
        class ClientConnectError(Exception):
            """HTTP client transport error outside the OSError tree."""

        async def fetch_block():
            try:
                raise ClientConnectError("connection refused")
            except ClientConnectError as e:
                raise UpstreamFetchError("Upstream unreachable") from e

        await local_cache.set("block", "old", ttl=60)
        clock.advance(600)

        assert await fetcher.fetch("block", fetch_block, ttl=60) == "old"

    @pytest.mark.asyncio
    async def test_untranslated_transport_error_raises(self, fetcher, local_cache, clock):
        class ClientConnectError(Exception):
            pass

        await local_cache.set("block", "old", ttl=60)
        clock.advance(600)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await fetcher.fetch(
                "block", AsyncMock(side_effect=ClientConnectError("refused")), ttl=60
            )

        assert isinstance(exc_info.value.__cause__, ClientConnectError)
        assert not isinstance(exc_info.value, UpstreamTimeoutError)
