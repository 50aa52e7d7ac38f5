"""
tiercache

Two-tier read-through cache: Redis (primary) backed by an in-process map
(fallback), with per-entry TTL evaluated at read time.
"""

__version__ = "1.0.0"
