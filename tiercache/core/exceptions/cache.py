"""
Cache-Related Exceptions

These never escape CacheManager. RemoteStore wraps redis-py failures in them
and hands them back inside a RemoteResult so the caller layer can log them.
"""

from tiercache.core.exceptions.base import TierCacheError


class CacheError(TierCacheError):
    """Base exception for cache-related errors."""
    pass


class RemoteConnectionError(CacheError):
    """
    Raised when the single Redis connection attempt fails.

    Common causes:
    - Redis server is down or refusing connections
    - TLS/authentication failure
    - Incorrect URL/host/port configuration
    """
    pass


class RemoteTimeoutError(CacheError):
    """Raised when a connect or command loses the race against its timeout."""
    pass


class RemoteOperationError(CacheError):
    """Raised when a GET/SET/DEL/FLUSHDB fails on an already connected client."""
    pass


class CacheSerializationError(CacheError):
    """
    Raised when an entry cannot be encoded for, or decoded from, Redis.

    Common causes:
    - Value is not JSON-serializable
    - Payload written by another producer with a different layout
    """
    pass
