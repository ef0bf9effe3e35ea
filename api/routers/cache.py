# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Description: cache.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_semantic_service
from api.schemas.cache import CacheClearResponse, CacheStatsResponse
from services.KBSemanticService import KBSemanticService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("/stats", response_model=CacheStatsResponse)
def get_cache_stats(svc: KBSemanticService = Depends(get_semantic_service)) -> CacheStatsResponse:
    return CacheStatsResponse(**svc.cache_stats())


@router.delete("", response_model=CacheClearResponse)
def clear_cache(svc: KBSemanticService = Depends(get_semantic_service)) -> CacheClearResponse:
    removed = svc.cache_clear()
    logger.info("DELETE /cache removed=%d", removed)
    return CacheClearResponse(namespace=None, removed=removed)


@router.delete("/{namespace}", response_model=CacheClearResponse)
def clear_cache_namespace(
    namespace: str,
    svc: KBSemanticService = Depends(get_semantic_service),
) -> CacheClearResponse:
    removed = svc.cache_clear(namespace)
    logger.info("DELETE /cache/%s removed=%d", namespace, removed)
    return CacheClearResponse(namespace=namespace, removed=removed)
