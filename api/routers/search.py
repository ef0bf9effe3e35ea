# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-23
# Description: search router
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_semantic_service
from api.schemas.search import RankedHit, SearchRequest, SearchResponse, SimilarResponse
from services.KBSemanticService import KBSemanticService
from utility.errors import DimensionMismatch, StorageUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


@router.post("/search", response_model=SearchResponse)
def post_search(
    req: SearchRequest,
    svc: KBSemanticService = Depends(get_semantic_service),
) -> SearchResponse:
    query_text = (req.query or "").strip()
    if not query_text:
        raise HTTPException(status_code=400, detail="query must not be empty")

    try:
        results = svc.semantic_search(query_text, req.threshold, req.limit)
    except StorageUnavailable as e:
        logger.error("POST /search -> 503: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    except DimensionMismatch as e:
        logger.error("POST /search -> 409: %s", e)
        raise HTTPException(status_code=409, detail=f"{e}; re-embed sources after changing models")
    except Exception as e:
        logger.exception("Search failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Search failed: {e}")

    return SearchResponse(
        query=query_text,
        count=len(results),
        using_fallback=svc.is_using_fallback(),
        results=[RankedHit(**r.to_dict()) for r in results],
    )


@router.get("/similar/{source_id:path}", response_model=SimilarResponse)
def get_similar(
    source_id: str,
    threshold: Optional[float] = Query(None, ge=-1.0, le=1.0),
    limit: Optional[int] = Query(None, ge=1, le=100),
    svc: KBSemanticService = Depends(get_semantic_service),
) -> SimilarResponse:
    logger.info("GET /similar/%s (threshold=%s, limit=%s)", source_id, threshold, limit)
    try:
        results = svc.find_similar_to_source(source_id, threshold, limit)
    except StorageUnavailable as e:
        logger.error("GET /similar -> 503: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    except DimensionMismatch as e:
        logger.error("GET /similar -> 409: %s", e)
        raise HTTPException(status_code=409, detail=f"{e}; re-embed sources after changing models")
    except Exception as e:
        logger.exception("Similarity lookup failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Similarity lookup failed: {e}")

    return SimilarResponse(
        source_id=source_id,
        count=len(results),
        results=[RankedHit(**r.to_dict()) for r in results],
    )
