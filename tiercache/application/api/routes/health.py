"""
Health Check Routes

- GET /health                 liveness, no dependencies touched
- GET /health/cache           CacheStats snapshot (no I/O)
- GET /health/cache/detailed  per-tier health, pings Redis when connected

A degraded Redis is reported in the body but still answers 200: the local
tier keeps serving, so the service itself is up.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from tiercache.application.api.dependencies import CacheDep, SettingsDep
from tiercache.infrastructure.cache.cache_manager import CacheStats

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str
    timestamp: str
    version: str


class CacheHealthResponse(BaseModel):
    """Detailed cache health response."""

    status: str  # "healthy" or "degraded"
    timestamp: str
    local: dict[str, Any]
    remote: dict[str, Any]
    operations: dict[str, Any]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("", response_model=HealthResponse)
async def health_check(settings: SettingsDep):
    """Quick liveness check for load balancers."""
    return HealthResponse(status="healthy", timestamp=_now(), version=settings.app.APP_VERSION)


@router.get("/cache", response_model=CacheStats)
async def cache_stats(cache: CacheDep):
    """Cache stats: remote connectivity, local entry count, whether Redis was tried."""
    return cache.stats()


@router.get("/cache/detailed", response_model=CacheHealthResponse)
async def cache_health(cache: CacheDep):
    """Per-tier health and operation counters."""
    health = await cache.health_check()
    return CacheHealthResponse(timestamp=_now(), **health)
