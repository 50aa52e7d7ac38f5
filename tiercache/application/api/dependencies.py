"""
FastAPI Dependency Injection

Route handlers receive the cache and settings through ``Depends`` instead of
reaching for globals. The CacheManager is built once in the application
lifespan and kept on ``app.state.cache``; these providers read it back per
request.

Example:
    @router.get("/stats")
    async def stats(cache: CacheDep):
        return cache.stats()
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from tiercache.core.config.settings import Settings, get_settings
from tiercache.infrastructure.cache.cache_manager import CacheManager


def get_cache(request: Request) -> CacheManager:
    """
    Retrieve the CacheManager from application state.

    Raises:
        HTTPException: 503 if the lifespan startup has not stored a cache
    """
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cache not initialized",
        )
    return cache


# ============================================================================
# TYPE ALIASES
# ============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings)]
CacheDep = Annotated[CacheManager, Depends(get_cache)]
