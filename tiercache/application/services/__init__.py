"""
Application Services

- **cached_fetcher.py**: read-through upstream fetch with stale-on-error fallback
"""

from tiercache.application.services.cached_fetcher import CachedFetcher

__all__ = ["CachedFetcher"]
