"""
System Constants and Enumerations

Defines the connection states, result kinds and tier names shared by the
cache layers, plus the numeric defaults used when settings are not provided.
"""

from enum import Enum

# ============================================================================
# Remote Connection States
# ============================================================================


class ConnectionState(str, Enum):
    """
    Lifecycle of the single Redis connection attempt.

    NOT_ATTEMPTED: connect() has not run yet
    ATTEMPTING: connect() is racing PING against the connect timeout
    CONNECTED: Redis is usable
    DEGRADED: Redis is unusable (never configured, failed, dropped or closed)

    DEGRADED is terminal. There is no path back to ATTEMPTING.
    """

    NOT_ATTEMPTED = "not_attempted"
    ATTEMPTING = "attempting"
    CONNECTED = "connected"
    DEGRADED = "degraded"


# ============================================================================
# Remote Operation Outcomes
# ============================================================================


class RemoteOutcome(str, Enum):
    """
    Result kind of a single remote operation.

    OK: command executed (a GET may still carry no value)
    SKIPPED: not executed because Redis is not connected or not configured
    TIMEOUT: command or connect lost the race against its timer
    FAILURE: transport or server error
    SERIALIZATION_ERROR: entry could not be encoded, or stored payload decoded
    """

    OK = "ok"
    SKIPPED = "skipped"
    TIMEOUT = "timeout"
    FAILURE = "failure"
    SERIALIZATION_ERROR = "serialization_error"


# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Where a read was answered from.

    REMOTE: Redis (primary)
    LOCAL: in-process map (fallback)
    MISS: neither tier had a fresh entry
    """

    REMOTE = "remote"
    LOCAL = "local"
    MISS = "miss"


# ============================================================================
# Defaults
# ============================================================================

REDIS_DEFAULT_PORT = 6379
REDIS_DEFAULT_USERNAME = "default"
REDIS_DEFAULT_DATABASE = 0

# Seconds
REDIS_CONNECT_TIMEOUT = 15.0
REDIS_COMMAND_TIMEOUT = 5.0

CACHE_DEFAULT_TTL = 5 * 60
CACHE_SWEEP_INTERVAL = 5 * 60
CACHE_SWEEP_MAX_AGE = 10 * 60

UPSTREAM_FETCH_TIMEOUT = 15.0

# Key prefix for generated cache keys
CACHE_KEY_PREFIX = "cache"
