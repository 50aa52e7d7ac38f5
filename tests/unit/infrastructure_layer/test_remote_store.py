"""
Unit Tests for RemoteStore

Tests the single connection attempt, timeout racing, error classification
and the no-reconnect rule. Redis is replaced by FakeRedis.
"""

import asyncio

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from tests.test_fixtures import CacheTestFactory
from tiercache.core.config.constants import ConnectionState, RemoteOutcome
from tiercache.core.exceptions import (
    CacheSerializationError,
    RemoteConnectionError,
    RemoteOperationError,
    RemoteTimeoutError,
)
from tiercache.infrastructure.cache.entry import CacheEntry
from tiercache.infrastructure.cache.remote_store import RemoteStore, build_client


@pytest.mark.unit
class TestConnect:
    """Test the connection lifecycle."""

    @pytest.mark.asyncio
    async def test_unconfigured_skips_network(self):
        factory_calls = []
        settings = CacheTestFactory.settings().redis
        store = RemoteStore(settings, client_factory=lambda s: factory_calls.append(s))

        result = await store.connect()

        assert result.outcome is RemoteOutcome.SKIPPED
        assert store.state is ConnectionState.DEGRADED
        assert store.connection_attempted is False
        assert factory_calls == []

    @pytest.mark.asyncio
    async def test_successful_connect(self, fake_redis):
        store = CacheTestFactory.remote_store(fake_redis)
        assert store.state is ConnectionState.NOT_ATTEMPTED

        result = await store.connect()

        assert result.ok
        assert store.state is ConnectionState.CONNECTED
        assert store.is_connected
        assert store.connection_attempted is True
        assert fake_redis.called("ping") == 1

    @pytest.mark.asyncio
    async def test_refused_connection_degrades(self):
        client = CacheTestFactory.failing_redis(RedisConnectionError("Connection refused"))
        store = CacheTestFactory.remote_store(client)

        result = await store.connect()

        assert result.outcome is RemoteOutcome.FAILURE
        assert result.degraded is True
        assert isinstance(result.error, RemoteConnectionError)
        assert store.state is ConnectionState.DEGRADED
        assert store.connection_attempted is True
        assert client.closed is True

    @pytest.mark.asyncio
    async def test_connect_timeout_degrades(self):
        client = CacheTestFactory.slow_redis(delay=1.0)
        store = CacheTestFactory.remote_store(client, REDIS_CONNECT_TIMEOUT=0.05)

        result = await store.connect()

        assert result.outcome is RemoteOutcome.TIMEOUT
        assert isinstance(result.error, RemoteTimeoutError)
        assert result.error.details["timeout_seconds"] == 0.05
        assert store.state is ConnectionState.DEGRADED

    @pytest.mark.asyncio
    async def test_invalid_url_is_a_failure(self):
        settings = CacheTestFactory.settings(REDIS_URL="memcached://nope").redis
        store = RemoteStore(settings)

        result = await store.connect()

        assert result.outcome is RemoteOutcome.FAILURE
        assert store.state is ConnectionState.DEGRADED

    @pytest.mark.asyncio
    async def test_connect_attempted_only_once(self):
        client = CacheTestFactory.failing_redis()
        store = CacheTestFactory.remote_store(client)

        await store.connect()
        client.ping_error = None
        second = await store.connect()

        assert second.outcome is RemoteOutcome.SKIPPED
        assert client.called("ping") == 1
        assert store.state is ConnectionState.DEGRADED

    @pytest.mark.asyncio
    async def test_concurrent_connect_single_attempt(self, fake_redis):
        store = CacheTestFactory.remote_store(fake_redis)

        results = await asyncio.gather(*(store.connect() for _ in range(5)))

        assert fake_redis.called("ping") == 1
        assert all(r.ok for r in results)

    @pytest.mark.asyncio
    async def test_close_releases_and_degrades(self, fake_redis):
        store = CacheTestFactory.remote_store(fake_redis)
        await store.connect()

        result = await store.close()

        assert result.ok
        assert fake_redis.closed is True
        assert store.state is ConnectionState.DEGRADED


@pytest.mark.unit
class TestOperations:
    """Test GET/SET/DEL/FLUSHDB against a connected store."""

    @pytest.fixture
    async def store(self, fake_redis):
        store = CacheTestFactory.remote_store(fake_redis)
        await store.connect()
        return store

    @pytest.mark.asyncio
    async def test_set_uses_millisecond_expiry(self, store, fake_redis):
        await store.set("k", CacheEntry(value="v", stored_at=1.0), ttl=1.5)

        assert fake_redis.expiry_ms["k"] == 1500

    @pytest.mark.asyncio
    async def test_set_rounds_expiry_up(self, store, fake_redis):
        await store.set("k", CacheEntry(value="v", stored_at=1.0), ttl=0.0001)

        assert fake_redis.expiry_ms["k"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ttl", [0, -1, None])
    async def test_set_without_expiry(self, store, fake_redis, ttl):
        await store.set("k", CacheEntry(value="v", stored_at=1.0), ttl=ttl)

        assert fake_redis.expiry_ms["k"] is None

    @pytest.mark.asyncio
    async def test_get_decodes_entry(self, store):
        entry = CacheEntry(value={"a": [1, 2]}, stored_at=7.0)
        await store.set("k", entry, ttl=60)

        result = await store.get("k")

        assert result.ok
        assert result.value == entry

    @pytest.mark.asyncio
    async def test_get_missing_key(self, store):
        result = await store.get("absent")

        assert result.ok
        assert result.value is None

    @pytest.mark.asyncio
    async def test_undecodable_payload_is_a_miss_without_degrading(self, store, fake_redis):
        fake_redis.data["k"] = b"\x00garbage"

        result = await store.get("k")

        assert result.outcome is RemoteOutcome.SERIALIZATION_ERROR
        assert result.value is None
        assert isinstance(result.error, CacheSerializationError)
        assert store.is_connected

    @pytest.mark.asyncio
    async def test_unserializable_value_not_sent(self, store, fake_redis):
        result = await store.set("k", CacheEntry(value={1, 2}, stored_at=1.0), ttl=60)

        assert result.outcome is RemoteOutcome.SERIALIZATION_ERROR
        assert fake_redis.called("set") == 0
        assert store.is_connected

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, store, fake_redis):
        fake_redis.data.update({"a": orjson.dumps({"value": 1, "stored_at": 1})})

        assert (await store.delete("a")).ok
        assert "a" not in fake_redis.data
        assert (await store.clear()).ok
        assert fake_redis.called("flushdb") == 1

    @pytest.mark.asyncio
    async def test_command_error_degrades_and_reads_as_miss(self, store, fake_redis):
        fake_redis.command_error = ResponseError("READONLY")

        result = await store.get("k")

        assert result.outcome is RemoteOutcome.FAILURE
        assert result.value is None
        assert result.degraded is True
        assert isinstance(result.error, RemoteOperationError)
        assert store.state is ConnectionState.DEGRADED

    @pytest.mark.asyncio
    async def test_command_timeout_degrades(self, fake_redis):
        store = CacheTestFactory.remote_store(fake_redis, REDIS_COMMAND_TIMEOUT=0.05)
        await store.connect()
        fake_redis.delay = 1.0

        result = await store.set("k", CacheEntry(value=1, stored_at=1.0), ttl=10)

        assert result.outcome is RemoteOutcome.TIMEOUT
        assert isinstance(result.error, RemoteTimeoutError)
        assert store.state is ConnectionState.DEGRADED

    @pytest.mark.asyncio
    async def test_command_timeout_on_get_reads_as_miss(self, fake_redis):
        store = CacheTestFactory.remote_store(fake_redis, REDIS_COMMAND_TIMEOUT=0.05)
        await store.connect()
        fake_redis.delay = 1.0

        result = await store.get("k")

        assert result.outcome is RemoteOutcome.TIMEOUT
        assert result.value is None
        assert result.degraded is True
        assert isinstance(result.error, RemoteTimeoutError)
        assert store.state is ConnectionState.DEGRADED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["delete", "clear"])
    async def test_command_timeout_on_delete_and_clear(self, fake_redis, operation):
        store = CacheTestFactory.remote_store(fake_redis, REDIS_COMMAND_TIMEOUT=0.05)
        await store.connect()
        fake_redis.delay = 1.0

        if operation == "delete":
            result = await store.delete("k")
        else:
            result = await store.clear()

        assert result.outcome is RemoteOutcome.TIMEOUT
        assert store.state is ConnectionState.DEGRADED

    @pytest.mark.asyncio
    async def test_no_commands_after_degrade(self, store, fake_redis):
        fake_redis.command_error = ResponseError("boom")
        await store.get("k")
        fake_redis.command_error = None
        calls_before = len(fake_redis.calls)

        result = await store.get("k")

        assert result.outcome is RemoteOutcome.SKIPPED
        assert result.degraded is False
        assert len(fake_redis.calls) == calls_before

    @pytest.mark.asyncio
    async def test_only_first_failure_reports_transition(self, store, fake_redis):
        fake_redis.command_error = ResponseError("boom")

        first = await store.get("k")
        second = await store.set("k", CacheEntry(value=1, stored_at=1.0), ttl=1)

        assert first.degraded is True
        assert second.outcome is RemoteOutcome.SKIPPED
        assert second.degraded is False


@pytest.mark.unit
class TestClientConstruction:
    """Test how redis-py clients are built from settings."""

    def test_url_takes_precedence(self):
        settings = CacheTestFactory.settings(
            REDIS_URL="redis://default:pw@url-host:6390/3", REDIS_HOST="ignored-host"
        ).redis

        client = build_client(settings)
        kwargs = client.connection_pool.connection_kwargs

        assert kwargs["host"] == "url-host"
        assert kwargs["port"] == 6390
        assert kwargs["db"] == 3

    def test_host_mode(self):
        settings = CacheTestFactory.settings(
            REDIS_HOST="cache.internal", REDIS_PORT=6380, REDIS_DATABASE=1, REDIS_PASSWORD="pw"
        ).redis

        client = build_client(settings)
        kwargs = client.connection_pool.connection_kwargs

        assert kwargs["host"] == "cache.internal"
        assert kwargs["port"] == 6380
        assert kwargs["db"] == 1
        assert kwargs["username"] == "default"
        assert kwargs["password"] == "pw"
        assert kwargs["socket_timeout"] == 5.0

    def test_endpoint_is_redacted(self):
        settings = CacheTestFactory.settings(REDIS_URL="rediss://default:hunter2@h:1").redis

        assert RemoteStore(settings).endpoint == "rediss://default:***@h:1"

    def test_host_endpoint(self):
        settings = CacheTestFactory.settings(REDIS_HOST="h").redis

        assert RemoteStore(settings).endpoint == "h:6379/0"
