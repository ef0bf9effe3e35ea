# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-26
# Description: vectors router
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_semantic_service
from api.schemas.vectors import VectorItem, VectorsRequest, VectorsResponse
from services.KBSemanticService import KBSemanticService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["vectors"])


@router.post("/vectors", response_model=VectorsResponse)
def post_vectors(
    req: VectorsRequest,
    svc: KBSemanticService = Depends(get_semantic_service),
) -> VectorsResponse:
    logger.info("POST /vectors (start) texts=%d", len(req.texts))
    try:
        embedded = svc.embed_texts(req.texts, req.ids)
    except Exception as e:
        logger.exception("POST /vectors -> 500: %s", e)
        raise HTTPException(status_code=500, detail=f"embedding failed: {e}")

    items = [
        VectorItem(
            index=i,
            id=req.ids[i] if req.ids is not None else None,
            model=ev.model,
            used_fallback=ev.used_fallback,
            vector=ev.vector.tolist(),
        )
        for i, ev in enumerate(embedded)
    ]
    return VectorsResponse(
        count=len(items),
        using_fallback=any(item.used_fallback for item in items),
        items=items,
    )
