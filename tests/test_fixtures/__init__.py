"""
Test Fixtures Package

Shared test utilities: fake Redis, fake clock and cache builders.
"""

from .cache_factory import CacheTestFactory, FakeClock, FakeRedis

__all__ = ["CacheTestFactory", "FakeClock", "FakeRedis"]
