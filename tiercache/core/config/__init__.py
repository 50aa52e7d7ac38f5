"""
Configuration Module

Centralized, type-safe configuration for the cache service.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Connection states, outcome kinds, tiers and numeric defaults

Usage:
------
```python
from tiercache.core.config import get_settings
from tiercache.core.config.constants import ConnectionState

settings = get_settings()
settings.redis.REDIS_URL
settings.cache.CACHE_SWEEP_MAX_AGE
```

Testing:
-------
```python
from tiercache.core.config.settings import Settings

settings = Settings(REDIS_URL=None, REDIS_HOST=None)  # Local-only
```
"""

from tiercache.core.config.constants import (
    CACHE_DEFAULT_TTL,
    CACHE_KEY_PREFIX,
    CACHE_SWEEP_INTERVAL,
    CACHE_SWEEP_MAX_AGE,
    REDIS_COMMAND_TIMEOUT,
    REDIS_CONNECT_TIMEOUT,
    UPSTREAM_FETCH_TIMEOUT,
    CacheTier,
    ConnectionState,
    RemoteOutcome,
)
from tiercache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "CacheTier",
    "ConnectionState",
    "RemoteOutcome",
    # Defaults
    "CACHE_DEFAULT_TTL",
    "CACHE_KEY_PREFIX",
    "CACHE_SWEEP_INTERVAL",
    "CACHE_SWEEP_MAX_AGE",
    "REDIS_COMMAND_TIMEOUT",
    "REDIS_CONNECT_TIMEOUT",
    "UPSTREAM_FETCH_TIMEOUT",
]
