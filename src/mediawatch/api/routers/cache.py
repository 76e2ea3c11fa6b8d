"""
Cache admin router.

GET  /cache/stats   cache counters plus breaker and rate-limit state
POST /cache/clear   drop every cached entry
"""

from __future__ import annotations

from fastapi import APIRouter

from mediawatch.api.deps import AppContainer
from mediawatch.api.schemas import CacheClearResponse, CacheStatsResponse

router = APIRouter(prefix="/cache")


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(container: AppContainer) -> CacheStatsResponse:
    gateway = container.gateway.status()
    return CacheStatsResponse(
        cache=container.content.cache_stats().to_dict(),
        circuits=gateway["circuits"],
        rate_limits=gateway["rate_limits"],
    )


@router.post("/clear", response_model=CacheClearResponse)
async def clear_cache(container: AppContainer) -> CacheClearResponse:
    return CacheClearResponse(cleared=container.content.clear_cache())
