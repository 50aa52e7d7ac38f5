"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tests.test_fixtures import CacheTestFactory, FakeClock, FakeRedis  # noqa: E402

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode via pyproject.toml


# Environment variables that would leak a developer's Redis into unit tests
_CACHE_ENV_VARS = (
    "REDIS_URL",
    "REDIS_HOST",
    "REDIS_PORT",
    "REDIS_USERNAME",
    "REDIS_PASSWORD",
    "REDIS_DATABASE",
    "REDIS_TLS",
    "CACHE_SWEEPER_ENABLED",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Clear Redis env vars and reset the cached global settings around each test."""
    from tiercache.core.config import settings as settings_module

    for name in _CACHE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(settings_module, "_settings", None)


# ============================================================================
# Building Blocks
# ============================================================================


@pytest.fixture
def clock():
    """Manually advanced clock shared by the cache under test."""
    return FakeClock()


@pytest.fixture
def fake_redis():
    """Healthy in-memory Redis stand-in."""
    return FakeRedis()


@pytest.fixture
def local_settings():
    """Settings with no Redis configured."""
    return CacheTestFactory.settings()


# ============================================================================
# Cache Managers
# ============================================================================


@pytest.fixture
async def local_cache(clock):
    """Initialized local-only CacheManager."""
    manager = CacheTestFactory.cache_manager(clock=clock)
    await manager.initialize()
    yield manager
    await manager.shutdown()


@pytest.fixture
async def remote_cache(fake_redis, clock):
    """Initialized CacheManager connected to ``fake_redis``."""
    manager = CacheTestFactory.cache_manager(client=fake_redis, clock=clock)
    await manager.initialize()
    assert manager.stats().remote_connected
    yield manager
    await manager.shutdown()
