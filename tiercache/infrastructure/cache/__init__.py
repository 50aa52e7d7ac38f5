"""
Cache Infrastructure

Two tiers behind one facade:
- **remote_store.py**: Redis adapter (single connection attempt, soft failures)
- **local_store.py**: in-process fallback map
- **sweeper.py**: periodic eviction of old local entries
- **cache_manager.py**: CacheManager facade, CacheObserver, CacheStats
"""

from tiercache.infrastructure.cache.cache_manager import CacheManager, CacheObserver, CacheStats
from tiercache.infrastructure.cache.entry import CacheEntry
from tiercache.infrastructure.cache.local_store import LocalStore
from tiercache.infrastructure.cache.remote_store import RemoteResult, RemoteStore
from tiercache.infrastructure.cache.sweeper import ExpirySweeper

__all__ = [
    "CacheEntry",
    "CacheManager",
    "CacheObserver",
    "CacheStats",
    "ExpirySweeper",
    "LocalStore",
    "RemoteResult",
    "RemoteStore",
]
