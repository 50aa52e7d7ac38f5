"""
Remote Store Adapter - Redis Primary Tier

Architecture:
    RemoteStore (Public API)
        ├── build_client (URL or host/port client construction)
        ├── connect (single attempt, PING raced against connect timeout)
        └── _execute (per-command timeout race + error classification)

Contract:
    - At most one connection attempt per instance. Once DEGRADED it stays
      DEGRADED; there is no reconnect loop.
    - Nothing raises past this class. Every failure comes back as a
      RemoteResult carrying the outcome kind and a wrapped CacheError.
    - This class does not log. The caller layer (CacheManager) decides what
      to log from the returned results.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from tiercache.core.config.constants import ConnectionState, RemoteOutcome
from tiercache.core.config.settings import RedisSettings
from tiercache.core.exceptions import (
    CacheError,
    CacheSerializationError,
    RemoteConnectionError,
    RemoteOperationError,
    RemoteTimeoutError,
)
from tiercache.core.logging import redact_credentials
from tiercache.infrastructure.cache.entry import CacheEntry

ClientFactory = Callable[[RedisSettings], redis.Redis]


@dataclass(frozen=True, slots=True)
class RemoteResult:
    """
    Outcome of one remote operation.

    Attributes:
        outcome: What happened (see RemoteOutcome)
        operation: "connect", "get", "set", "delete", "clear", "ping", "close"
        key: Cache key, when the operation has one
        value: Decoded CacheEntry for a GET hit, raw reply otherwise
        error: Wrapped exception for TIMEOUT/FAILURE/SERIALIZATION_ERROR
        degraded: True when this very call moved the state to DEGRADED
    """

    outcome: RemoteOutcome
    operation: str
    key: str | None = None
    value: Any = None
    error: CacheError | None = None
    degraded: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is RemoteOutcome.OK


def build_client(settings: RedisSettings) -> redis.Redis:
    """
    Build an asyncio Redis client from settings.

    REDIS_URL is used verbatim and wins over the host fields; a rediss:// URL
    turns TLS on by itself. Payloads stay as bytes (decode_responses=False)
    because entries are orjson-encoded.
    """
    timeouts = {
        "socket_connect_timeout": settings.REDIS_CONNECT_TIMEOUT,
        "socket_timeout": settings.REDIS_COMMAND_TIMEOUT,
    }

    if settings.REDIS_URL:
        return redis.Redis.from_url(settings.REDIS_URL, **timeouts)

    return redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DATABASE,
        username=settings.REDIS_USERNAME,
        password=settings.REDIS_PASSWORD,
        ssl=settings.REDIS_TLS,
        **timeouts,
    )


class RemoteStore:
    """
    Optional connection to Redis with a health flag and timeout policy.

    Responsibility: connection lifecycle, timeout racing and error
    classification for the primary tier.

    State Machine:
        NOT_ATTEMPTED -> ATTEMPTING -> CONNECTED -> DEGRADED
                                    \\-> DEGRADED
        NOT_ATTEMPTED -> DEGRADED  (no configuration)

    Usage:
        store = RemoteStore(settings.redis)
        await store.connect()
        result = await store.get("latest-block")
        if result.ok and result.value is not None:
            entry = result.value
    """

    def __init__(self, settings: RedisSettings, client_factory: ClientFactory | None = None):
        """
        Initialize the adapter. No I/O happens here.

        Args:
            settings: Redis settings
            client_factory: Builds the redis client (tests inject fakes)
        """
        self._settings = settings
        self._client_factory = client_factory or build_client
        self._client: redis.Redis | None = None
        self._state = ConnectionState.NOT_ATTEMPTED
        self._connection_attempted = False
        self._connect_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def connection_attempted(self) -> bool:
        """True once a network connection attempt has been made."""
        return self._connection_attempted

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    @property
    def endpoint(self) -> str | None:
        """Where we connect to, with credentials masked. Safe to log."""
        if self._settings.REDIS_URL:
            return redact_credentials(self._settings.REDIS_URL)
        if self._settings.REDIS_HOST:
            return f"{self._settings.REDIS_HOST}:{self._settings.REDIS_PORT}/{self._settings.REDIS_DATABASE}"
        return None

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> RemoteResult:
        """
        Make the single connection attempt.

        STAGE-REDIS.1: Connection establishment

        Later calls are no-ops that report the current state. The lock keeps
        concurrent callers from racing into two attempts.

        Returns:
            RemoteResult with outcome OK (connected), SKIPPED (not configured
            or already attempted), TIMEOUT or FAILURE
        """
        async with self._connect_lock:
            if self._state is not ConnectionState.NOT_ATTEMPTED:
                return RemoteResult(
                    RemoteOutcome.OK if self.is_connected else RemoteOutcome.SKIPPED,
                    "connect",
                )

            if not self.is_configured:
                self._state = ConnectionState.DEGRADED
                return RemoteResult(RemoteOutcome.SKIPPED, "connect")

            self._connection_attempted = True
            self._state = ConnectionState.ATTEMPTING
            timeout = self._settings.REDIS_CONNECT_TIMEOUT

            try:
                client = self._client_factory(self._settings)
            except (ValueError, RedisError) as e:
                # from_url rejects unknown schemes with ValueError
                self._state = ConnectionState.DEGRADED
                return RemoteResult(
                    RemoteOutcome.FAILURE,
                    "connect",
                    error=RemoteConnectionError.from_exception(
                        e, message=f"Invalid Redis configuration: {e}", endpoint=self.endpoint
                    ),
                    degraded=True,
                )

            try:
                await asyncio.wait_for(client.ping(), timeout=timeout)
            except (asyncio.TimeoutError, RedisTimeoutError) as e:
                self._state = ConnectionState.DEGRADED
                await self._discard(client)
                return RemoteResult(
                    RemoteOutcome.TIMEOUT,
                    "connect",
                    error=RemoteTimeoutError.from_exception(
                        e,
                        message=f"Redis connection timeout after {timeout}s",
                        endpoint=self.endpoint,
                        timeout_seconds=timeout,
                    ),
                    degraded=True,
                )
            except Exception as e:
                self._state = ConnectionState.DEGRADED
                await self._discard(client)
                return RemoteResult(
                    RemoteOutcome.FAILURE,
                    "connect",
                    error=RemoteConnectionError.from_exception(
                        e, message=f"Failed to connect to Redis: {e}", endpoint=self.endpoint
                    ),
                    degraded=True,
                )

            self._client = client
            self._state = ConnectionState.CONNECTED
            return RemoteResult(RemoteOutcome.OK, "connect")

    async def close(self) -> RemoteResult:
        """
        Release the connection.

        STAGE-REDIS.3: Connection cleanup

        The state ends DEGRADED, so a closed store is never reused.
        """
        client, self._client = self._client, None
        self._state = ConnectionState.DEGRADED

        if client is None:
            return RemoteResult(RemoteOutcome.SKIPPED, "close")

        try:
            await client.aclose()
        except Exception as e:
            return RemoteResult(
                RemoteOutcome.FAILURE,
                "close",
                error=RemoteOperationError.from_exception(e, message=f"Redis close failed: {e}"),
            )
        return RemoteResult(RemoteOutcome.OK, "close")

    @staticmethod
    async def _discard(client: redis.Redis) -> None:
        """Close a client whose connect attempt failed. Errors are irrelevant here."""
        try:
            await client.aclose()
        except Exception:
            pass

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> RemoteResult:
        """
        Get an entry.

        STAGE-REDIS.GET

        Returns:
            RemoteResult whose value is a CacheEntry, or None for "not found".
            Transport errors degrade the store and read as "not found".
        """
        result = await self._execute("get", key, lambda client: client.get(key))
        if not result.ok or result.value is None:
            return replace(result, value=None)

        try:
            entry = CacheEntry.from_json(result.value)
        except CacheSerializationError as e:
            return RemoteResult(
                RemoteOutcome.SERIALIZATION_ERROR, "get", key=key, error=e.with_context(key=key)
            )
        return replace(result, value=entry)

    async def set(self, key: str, entry: CacheEntry, ttl: float | None) -> RemoteResult:
        """
        Write an entry with Redis-native expiry.

        STAGE-REDIS.SET

        Args:
            key: Cache key
            entry: Entry to store
            ttl: Seconds; PX is set to ceil(ttl * 1000) when ttl > 0,
                 otherwise the key never expires
        """
        if not self.is_connected:
            return RemoteResult(RemoteOutcome.SKIPPED, "set", key=key)

        try:
            payload = entry.to_json()
        except CacheSerializationError as e:
            return RemoteResult(
                RemoteOutcome.SERIALIZATION_ERROR, "set", key=key, error=e.with_context(key=key)
            )

        if ttl is not None and ttl > 0:
            px = math.ceil(ttl * 1000)
            return await self._execute("set", key, lambda client: client.set(key, payload, px=px))
        return await self._execute("set", key, lambda client: client.set(key, payload))

    async def delete(self, key: str) -> RemoteResult:
        """Delete a key (best effort). STAGE-REDIS.DEL"""
        return await self._execute("delete", key, lambda client: client.delete(key))

    async def clear(self) -> RemoteResult:
        """Flush the configured database (best effort). STAGE-REDIS.FLUSH"""
        return await self._execute("clear", None, lambda client: client.flushdb())

    async def ping(self) -> RemoteResult:
        """Round-trip check used by health checks."""
        return await self._execute("ping", None, lambda client: client.ping())

    async def _execute(
        self,
        operation: str,
        key: str | None,
        command: Callable[[redis.Redis], Awaitable[Any]],
    ) -> RemoteResult:
        """
        Run one command raced against REDIS_COMMAND_TIMEOUT.

        Error Classification:
        - Not connected          -> SKIPPED, no I/O
        - Timer won the race     -> TIMEOUT, state DEGRADED
        - Any other exception    -> FAILURE, state DEGRADED
        CancelledError is not caught; cancelling the caller cancels the command.
        """
        client = self._client
        if not self.is_connected or client is None:
            return RemoteResult(RemoteOutcome.SKIPPED, operation, key=key)

        timeout = self._settings.REDIS_COMMAND_TIMEOUT
        try:
            value = await asyncio.wait_for(command(client), timeout=timeout)
        except (asyncio.TimeoutError, RedisTimeoutError) as e:
            return self._degrade(
                RemoteOutcome.TIMEOUT,
                operation,
                key,
                RemoteTimeoutError.from_exception(
                    e,
                    message=f"Redis {operation.upper()} timed out after {timeout}s",
                    key=key,
                    timeout_seconds=timeout,
                ),
            )
        except Exception as e:
            return self._degrade(
                RemoteOutcome.FAILURE,
                operation,
                key,
                RemoteOperationError.from_exception(
                    e, message=f"Redis {operation.upper()} failed: {e}", key=key
                ),
            )
        return RemoteResult(RemoteOutcome.OK, operation, key=key, value=value)

    def _degrade(
        self, outcome: RemoteOutcome, operation: str, key: str | None, error: CacheError
    ) -> RemoteResult:
        # Only the call that observed CONNECTED reports the transition
        was_connected = self.is_connected
        self._state = ConnectionState.DEGRADED
        return RemoteResult(outcome, operation, key=key, error=error, degraded=was_connected)
