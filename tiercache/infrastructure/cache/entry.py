"""
Cache Entry

A timestamped cached value. The entry carries no TTL; readers pass their own
TTL when checking freshness.

Serialization exists only at the Redis boundary. The local tier keeps the
Python object as-is.
"""

from dataclasses import dataclass
from typing import Any

import orjson

from tiercache.core.exceptions import CacheSerializationError


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    Cached value plus the wall-clock time it was stored.

    Attributes:
        value: Any JSON-serializable payload
        stored_at: Epoch seconds at write time
    """

    value: Any
    stored_at: float

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was stored."""
        return now - self.stored_at

    def is_fresh(self, ttl: float, now: float) -> bool:
        """
        Check freshness against the reader's TTL.

        An entry is stale once ``now - stored_at >= ttl``, so a non-positive
        TTL never yields a fresh entry.
        """
        return self.age(now) < ttl

    def to_json(self) -> bytes:
        """
        Encode for Redis.

        Raises:
            CacheSerializationError: If the value is not JSON-serializable
        """
        try:
            return orjson.dumps({"value": self.value, "stored_at": self.stored_at})
        except TypeError as e:
            raise CacheSerializationError.from_exception(
                e, message=f"Cannot encode cache entry: {e}"
            )

    @classmethod
    def from_json(cls, payload: bytes | str) -> "CacheEntry":
        """
        Decode a payload read from Redis.

        Raises:
            CacheSerializationError: If the payload is not a valid entry
        """
        try:
            data = orjson.loads(payload)
            return cls(value=data["value"], stored_at=float(data["stored_at"]))
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise CacheSerializationError.from_exception(
                e, message=f"Cannot decode cache entry: {e}"
            )
