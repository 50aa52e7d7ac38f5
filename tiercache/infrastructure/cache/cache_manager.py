"""
Cache Manager - Two-Tier Read-Through Cache

Architecture Overview:
    CacheManager (Public API)
        ├── RemoteStore (Redis, primary, optional)
        ├── LocalStore (in-process map, fallback, always available)
        ├── ExpirySweeper (periodic local eviction)
        └── CacheObserver (logging + counters)

Read path:
    Remote (if connected) -> fresh? return
    Local                 -> fresh? return
    otherwise miss (None)

Write path:
    Local always, Remote too while connected. Not atomic across tiers: a
    remote failure neither undoes nor retries the local write.

Staleness is judged with the reader's TTL against the entry's timestamp.
Every public operation is total: remote failures degrade the manager to
local-only and are logged, never raised.
"""

import time
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from tiercache.core.config.constants import CACHE_KEY_PREFIX, CacheTier, RemoteOutcome
from tiercache.core.config.settings import Settings, get_settings
from tiercache.core.logging import get_logger, log_stage
from tiercache.infrastructure.cache.entry import CacheEntry
from tiercache.infrastructure.cache.local_store import LocalStore
from tiercache.infrastructure.cache.remote_store import RemoteResult, RemoteStore
from tiercache.infrastructure.cache.sweeper import ExpirySweeper

logger = get_logger(__name__)

V = TypeVar("V")


class CacheStats(BaseModel):
    """Read-only snapshot of cache state. Computed without I/O."""

    model_config = ConfigDict(frozen=True)

    remote_connected: bool
    local_entry_count: int
    connection_attempted: bool


# =============================================================================
# OBSERVABILITY
# =============================================================================


class CacheObserver:
    """
    Turns cache events into log lines and counters.

    Responsibility: all side effects of cache operations. RemoteStore returns
    results; this class decides how loudly to report them.

    Logging Levels:
    - Lifecycle (connect, shutdown): info
    - Per-key hits, misses and writes: debug
    - Remote failures, degradation, stale fallbacks: warning
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger

        self._remote_hits = 0
        self._local_hits = 0
        self._misses = 0
        self._stale_fallbacks = 0
        self._remote_failures = 0
        self._serialization_errors = 0

    def record_connect(self, result: RemoteResult, endpoint: str | None) -> None:
        """Log the outcome of the single connection attempt."""
        if result.outcome is RemoteOutcome.OK:
            log_stage(self._logger, "REDIS.1", "Connected to Redis", endpoint=endpoint)
        elif result.outcome is RemoteOutcome.SKIPPED:
            log_stage(
                self._logger,
                "REDIS.1",
                "Redis not configured, running with local cache only",
            )
        else:
            self._remote_failures += 1
            log_stage(
                self._logger,
                "REDIS.1",
                "Redis connection failed, running with local cache only; "
                "no reconnect will be attempted",
                level="warning",
                endpoint=endpoint,
                outcome=result.outcome.value,
                **self._error_fields(result),
            )

    def record_remote(self, result: RemoteResult) -> None:
        """Log a failed remote operation and any state change it caused."""
        if result.outcome is RemoteOutcome.SERIALIZATION_ERROR:
            self._serialization_errors += 1
            log_stage(
                self._logger,
                "REDIS.SERDE",
                "Cache entry could not be serialized, treated as miss",
                level="warning",
                operation=result.operation,
                cache_key=result.key,
                **self._error_fields(result),
            )
            return

        if result.outcome not in (RemoteOutcome.TIMEOUT, RemoteOutcome.FAILURE):
            return

        self._remote_failures += 1
        log_stage(
            self._logger,
            f"REDIS.{result.operation.upper()}",
            "Redis operation failed",
            level="warning",
            operation=result.operation,
            outcome=result.outcome.value,
            cache_key=result.key,
            **self._error_fields(result),
        )

        if result.degraded:
            log_stage(
                self._logger,
                "REDIS.2",
                "Redis marked degraded, continuing with local cache only; "
                "no reconnect will be attempted",
                level="warning",
            )

    def record_lookup(self, tier: CacheTier, key: str) -> None:
        """Count where a read was answered from."""
        if tier is CacheTier.REMOTE:
            self._remote_hits += 1
            log_stage(self._logger, "CACHE.GET", "Remote cache hit", level="debug", cache_key=key)
        elif tier is CacheTier.LOCAL:
            self._local_hits += 1
            log_stage(self._logger, "CACHE.GET", "Local cache hit", level="debug", cache_key=key)
        else:
            self._misses += 1
            log_stage(self._logger, "CACHE.GET", "Cache miss", level="debug", cache_key=key)

    def record_write(self, operation: str, key: str | None, remote_written: bool) -> None:
        log_stage(
            self._logger,
            f"CACHE.{operation.upper()}",
            f"Cache {operation}",
            level="debug",
            cache_key=key,
            remote=remote_written,
        )

    def record_stale_fallback(self, key: str, error: BaseException) -> None:
        self._stale_fallbacks += 1
        log_stage(
            self._logger,
            "FETCH.STALE",
            "Upstream fetch failed, serving stale cached value",
            level="warning",
            cache_key=key,
            error=str(error),
            error_type=type(error).__name__,
        )

    def get_stats(self) -> dict[str, Any]:
        """
        Get operation counters.

        Returns:
            Dict with hit counts and hit rate
        """
        hits = self._remote_hits + self._local_hits
        total = hits + self._misses

        return {
            "remote_hits": self._remote_hits,
            "local_hits": self._local_hits,
            "misses": self._misses,
            "stale_fallbacks": self._stale_fallbacks,
            "remote_failures": self._remote_failures,
            "serialization_errors": self._serialization_errors,
            "hit_rate": round(hits / total, 4) if total else 0.0,
        }

    @staticmethod
    def _error_fields(result: RemoteResult) -> dict[str, Any]:
        if result.error is None:
            return {}
        return {
            "error": result.error.message,
            "error_type": result.error.details.get("original_error", type(result.error).__name__),
        }


# =============================================================================
# CACHE MANAGER
# =============================================================================


class CacheManager(Generic[V]):
    """
    Two-tier cache facade.

    Usage:
        cache = CacheManager()
        await cache.initialize()

        value = await cache.get("latest-block", ttl=60)
        if value is None:
            value = await fetch_latest_block()
            await cache.set("latest-block", value, ttl=60)

        await cache.shutdown()

    Notes:
        - A stored ``None`` reads back the same as a miss
        - After Redis degrades the manager stays local-only for its lifetime
    """

    def __init__(
        self,
        settings: Settings | None = None,
        remote: RemoteStore | None = None,
        local: LocalStore | None = None,
        observer: CacheObserver | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache manager. No I/O happens until initialize().

        Args:
            settings: Settings instance (defaults to get_settings())
            remote: Remote store (built from settings.redis if omitted)
            local: Local store
            observer: Observer for logging and counters
            clock: Wall-clock source in epoch seconds (injectable for tests)
        """
        self._settings = settings or get_settings()
        self._remote = remote or RemoteStore(self._settings.redis)
        self._local = local or LocalStore()
        self._observer = observer or CacheObserver()
        self._clock = clock

        cache_settings = self._settings.cache
        self._default_ttl = cache_settings.CACHE_DEFAULT_TTL
        self._sweeper: ExpirySweeper | None = None
        if cache_settings.CACHE_SWEEPER_ENABLED:
            self._sweeper = ExpirySweeper(
                self._local,
                interval=cache_settings.CACHE_SWEEP_INTERVAL,
                max_age=cache_settings.CACHE_SWEEP_MAX_AGE,
                clock=clock,
            )

        self._initialized = False

    @property
    def remote(self) -> RemoteStore:
        return self._remote

    @property
    def local(self) -> LocalStore:
        return self._local

    @property
    def observer(self) -> CacheObserver:
        return self._observer

    @property
    def sweeper(self) -> ExpirySweeper | None:
        return self._sweeper

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Connect to Redis (single attempt) and start the sweeper.

        STAGE-CACHE.INIT

        Safe to call more than once. A failed connection is logged and the
        manager carries on local-only.
        """
        if self._initialized:
            return

        result = await self._remote.connect()
        self._observer.record_connect(result, self._remote.endpoint)

        if self._sweeper is not None:
            self._sweeper.start()

        self._initialized = True
        log_stage(
            logger,
            "CACHE.INIT",
            "Cache manager initialized",
            remote_connected=self._remote.is_connected,
            sweeper_enabled=self._sweeper is not None,
        )

    async def shutdown(self) -> None:
        """
        Stop the sweeper and release the Redis connection.

        STAGE-CACHE.SHUTDOWN

        The local tier is left as is.
        """
        if self._sweeper is not None:
            await self._sweeper.stop()

        result = await self._remote.close()
        if result.error is not None:
            log_stage(
                logger,
                "REDIS.3",
                "Error closing Redis connection",
                level="warning",
                error=result.error.message,
            )

        self._initialized = False
        log_stage(logger, "CACHE.SHUTDOWN", "Cache manager shut down")

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str, ttl: float | None = None) -> V | None:
        """
        Get a fresh value.

        STAGE-CACHE.GET

        Args:
            key: Cache key
            ttl: Maximum acceptable age in seconds (defaults to
                 CACHE_DEFAULT_TTL). ttl <= 0 never returns a value.

        Returns:
            Value from the first tier holding a fresh entry, or None
        """
        ttl = self._default_ttl if ttl is None else ttl
        now = self._clock()

        entry = await self._remote_entry(key)
        if entry is not None and entry.is_fresh(ttl, now):
            self._observer.record_lookup(CacheTier.REMOTE, key)
            return entry.value

        # A remote miss or stale hit still falls through to local
        entry = await self._local.get(key)
        if entry is not None and entry.is_fresh(ttl, now):
            self._observer.record_lookup(CacheTier.LOCAL, key)
            return entry.value

        self._observer.record_lookup(CacheTier.MISS, key)
        return None

    async def get_ignoring_ttl(self, key: str) -> V | None:
        """
        Get the last stored value regardless of age.

        Used for stale-on-error fallbacks. Remote first (if connected),
        then local.
        """
        entry = await self._remote_entry(key)
        if entry is not None:
            return entry.value

        entry = await self._local.get(key)
        return entry.value if entry is not None else None

    async def set(self, key: str, value: V, ttl: float | None = None) -> None:
        """
        Store a value in both tiers.

        STAGE-CACHE.SET

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Native Redis expiry in seconds (defaults to
                 CACHE_DEFAULT_TTL); ttl <= 0 stores without expiry
        """
        ttl = self._default_ttl if ttl is None else ttl
        entry = CacheEntry(value=value, stored_at=self._clock())

        await self._local.set(key, entry)

        remote_written = False
        if self._remote.is_connected:
            result = await self._remote.set(key, entry, ttl)
            self._observer.record_remote(result)
            remote_written = result.ok

        self._observer.record_write("set", key, remote_written)

    async def delete(self, key: str) -> None:
        """Delete a key from both tiers. Remote best effort, local guaranteed."""
        remote_deleted = False
        if self._remote.is_connected:
            result = await self._remote.delete(key)
            self._observer.record_remote(result)
            remote_deleted = result.ok

        await self._local.delete(key)
        self._observer.record_write("delete", key, remote_deleted)

    async def clear(self) -> None:
        """
        Empty both tiers.

        Remote is flushed with FLUSHDB on the configured database, best effort.
        """
        remote_cleared = False
        if self._remote.is_connected:
            result = await self._remote.clear()
            self._observer.record_remote(result)
            remote_cleared = result.ok

        await self._local.clear()
        self._observer.record_write("clear", None, remote_cleared)

    def stats(self) -> CacheStats:
        """Snapshot of connection state and local size."""
        return CacheStats(
            remote_connected=self._remote.is_connected,
            local_entry_count=self._local.size(),
            connection_attempted=self._remote.connection_attempted,
        )

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on both tiers.

        Pings Redis while connected; a failed ping degrades it like any other
        remote failure. Status is "degraded" whenever Redis is not usable,
        including when it was never configured.

        Returns:
            Dict with overall status, per-tier details and operation counters
        """
        remote: dict[str, Any] = {
            "configured": self._remote.is_configured,
            "connection_attempted": self._remote.connection_attempted,
            "endpoint": self._remote.endpoint,
        }

        if self._remote.is_connected:
            start = time.perf_counter()
            result = await self._remote.ping()
            self._observer.record_remote(result)
            if result.ok:
                remote["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
            else:
                remote["error"] = result.error.message if result.error else result.outcome.value

        remote["state"] = self._remote.state.value
        remote["status"] = "healthy" if self._remote.is_connected else "degraded"

        return {
            "status": "healthy" if self._remote.is_connected else "degraded",
            "local": {
                "status": "healthy",
                "size": self._local.size(),
                "sweeper_running": bool(self._sweeper and self._sweeper.is_running),
            },
            "remote": remote,
            "operations": self._observer.get_stats(),
        }

    @staticmethod
    def generate_cache_key(prefix: str, *parts: Any) -> str:
        """
        Build a deterministic, readable cache key.

        Example:
            >>> CacheManager.generate_cache_key("block", 840000)
            'cache:block:840000'
        """
        return ":".join([CACHE_KEY_PREFIX, prefix, *(str(part) for part in parts)])

    async def _remote_entry(self, key: str) -> CacheEntry | None:
        if not self._remote.is_connected:
            return None

        result = await self._remote.get(key)
        self._observer.record_remote(result)
        return result.value if result.ok else None
