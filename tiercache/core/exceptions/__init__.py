"""
Exception Module

Structured exception hierarchy for tiercache, grouped by theme.

Module Structure:
-----------------
- **base.py**: TierCacheError base class + ConfigurationError
- **cache.py**: Remote tier and serialization exceptions
- **upstream.py**: Upstream fetch exceptions

Usage:
------
```python
from tiercache.core.exceptions import RemoteTimeoutError, UpstreamFetchError
```
"""

from tiercache.core.exceptions.base import ConfigurationError, TierCacheError
from tiercache.core.exceptions.cache import (
    CacheError,
    CacheSerializationError,
    RemoteConnectionError,
    RemoteOperationError,
    RemoteTimeoutError,
)
from tiercache.core.exceptions.upstream import UpstreamFetchError, UpstreamTimeoutError

__all__ = [
    # Base
    "TierCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheSerializationError",
    "RemoteConnectionError",
    "RemoteOperationError",
    "RemoteTimeoutError",
    # Upstream
    "UpstreamFetchError",
    "UpstreamTimeoutError",
]
