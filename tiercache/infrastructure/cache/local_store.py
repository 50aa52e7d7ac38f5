"""
Local Store

In-process fallback tier. Always available, no I/O, no failure modes.

This is a per-process map, not shared across workers. It holds the Python
objects directly; only the remote tier serializes.
"""

import asyncio
import time

from tiercache.infrastructure.cache.entry import CacheEntry


class LocalStore:
    """
    In-memory key -> CacheEntry map.

    Responsibility: authoritative fallback storage. Staleness is judged by
    the reader (CacheManager) or by the sweeper, never on write.

    Implementation Details:
    - Plain dict, guarded by asyncio.Lock so get/set/delete/evict interleave
      safely between concurrent request coroutines and the sweeper task
    - size() and keys() are lock-free snapshots for synchronous stats
    """

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> CacheEntry | None:
        """
        Get an entry regardless of age.

        Args:
            key: Cache key

        Returns:
            Stored entry or None if absent
        """
        async with self._lock:
            return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one (last write wins)."""
        async with self._lock:
            self._entries[key] = entry

    async def delete(self, key: str) -> bool:
        """
        Delete an entry.

        Returns:
            True if deleted, False if not found
        """
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        """Remove every entry."""
        async with self._lock:
            self._entries.clear()

    async def evict_older_than(self, max_age: float, now: float | None = None) -> int:
        """
        Evict entries whose age has reached ``max_age``.

        After this returns, no remaining entry has ``now - stored_at >= max_age``.

        Args:
            max_age: Age threshold in seconds
            now: Reference time (defaults to time.time())

        Returns:
            Number of evicted entries
        """
        now = time.time() if now is None else now

        async with self._lock:
            expired = [
                key for key, entry in self._entries.items()
                if entry.age(now) >= max_age
            ]
            for key in expired:
                del self._entries[key]

        return len(expired)

    def size(self) -> int:
        """Get current number of entries."""
        return len(self._entries)

    def keys(self) -> list[str]:
        """Get all keys (insertion order)."""
        return list(self._entries.keys())
