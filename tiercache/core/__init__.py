"""
Core Module

Foundational components: configuration, logging and exceptions.
"""

from .exceptions import (
    CacheError,
    CacheSerializationError,
    ConfigurationError,
    RemoteConnectionError,
    RemoteOperationError,
    RemoteTimeoutError,
    TierCacheError,
    UpstreamFetchError,
    UpstreamTimeoutError,
)
from .logging import get_logger, log_stage, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "log_stage",
    "TierCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheSerializationError",
    "RemoteConnectionError",
    "RemoteOperationError",
    "RemoteTimeoutError",
    "UpstreamFetchError",
    "UpstreamTimeoutError",
]
