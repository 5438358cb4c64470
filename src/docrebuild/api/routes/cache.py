"""Cache inspection endpoints."""

from fastapi import APIRouter

from docrebuild.api.dependencies import CacheStoreDep
from docrebuild.api.models import (
    APIResponse,
    CacheClearResponse,
    CacheInfoResponse,
    cache_info_to_response,
)

router = APIRouter(tags=["cache"])


@router.get("/cache", response_model=APIResponse[CacheInfoResponse])
def get_cache(store: CacheStoreDep) -> APIResponse[CacheInfoResponse]:
    """Summarize what the cache currently holds."""
    return APIResponse(data=cache_info_to_response(store.info()))


@router.delete("/cache", response_model=APIResponse[CacheClearResponse])
def clear_cache(store: CacheStoreDep) -> APIResponse[CacheClearResponse]:
    """Delete the cache file; the next decision rebuilds everything."""
    return APIResponse(data=CacheClearResponse(removed=store.clear()))
