"""
Expiry Sweeper

Background task that periodically evicts old entries from the local tier.
Redis expires its own keys natively, so the sweeper never touches it.

Lifecycle:
    sweeper.start()        # schedules the loop on the running event loop
    ...
    await sweeper.stop()   # cancels and awaits the task
"""

import asyncio
import time
from collections.abc import Callable

from tiercache.core.exceptions import ConfigurationError
from tiercache.core.logging import get_logger, log_stage
from tiercache.infrastructure.cache.local_store import LocalStore

logger = get_logger(__name__)


class ExpirySweeper:
    """
    Periodic eviction of local entries older than ``max_age``.

    One pass every ``interval`` seconds. A failing pass is logged and the
    loop keeps going; only cancellation ends it.
    """

    def __init__(
        self,
        store: LocalStore,
        interval: float,
        max_age: float,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize sweeper.

        Args:
            store: Local store to sweep
            interval: Seconds between passes
            max_age: Entries with age >= max_age are evicted
            clock: Wall-clock source (injectable for tests)

        Raises:
            ConfigurationError: If interval or max_age is not positive
        """
        if interval <= 0:
            raise ConfigurationError(
                "Sweep interval must be positive", details={"interval": interval}
            )
        if max_age <= 0:
            raise ConfigurationError(
                "Sweep max age must be positive", details={"max_age": max_age}
            )

        self._store = store
        self._interval = interval
        self._max_age = max_age
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def max_age(self) -> float:
        return self._max_age

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        """
        Run a single eviction pass.

        Returns:
            Number of evicted entries
        """
        evicted = await self._store.evict_older_than(self._max_age, now=self._clock())

        if evicted:
            log_stage(
                logger,
                "SWEEP.1",
                "Evicted expired local entries",
                evicted=evicted,
                remaining=self._store.size(),
                max_age=self._max_age,
            )
        return evicted

    def start(self) -> None:
        """Schedule the sweep loop. Calling start() twice keeps the first task."""
        if self.is_running:
            return

        self._task = asyncio.create_task(self._run(), name="tiercache-expiry-sweeper")
        log_stage(
            logger,
            "SWEEP.0",
            "Expiry sweeper started",
            interval=self._interval,
            max_age=self._max_age,
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

        log_stage(logger, "SWEEP.2", "Expiry sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except Exception as e:
                log_stage(
                    logger,
                    "SWEEP.ERROR",
                    "Expiry sweep failed",
                    level="error",
                    error=str(e),
                    exc_info=True,
                )
