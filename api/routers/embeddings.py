# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Description: embeddings.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_semantic_service
from api.schemas.embeddings import EmbedBatchRequest, EmbedBatchResponse, EmbedSourceResponse
from services.KBSemanticService import KBSemanticService
from utility.errors import StorageUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post("", response_model=EmbedBatchResponse)
def post_embed_batch(
    req: EmbedBatchRequest,
    svc: KBSemanticService = Depends(get_semantic_service),
) -> EmbedBatchResponse:
    logger.info("POST /embeddings (start) source_ids=%s", "all" if req.source_ids is None else len(req.source_ids))
    try:
        if req.source_ids is None:
            summary = svc.embed_all()
        else:
            summary = svc.embed_sources(req.source_ids)
    except Exception as e:
        logger.exception("POST /embeddings -> 500: %s", e)
        raise HTTPException(status_code=500, detail=f"embed failed: {e}")

    logger.info("POST /embeddings (done) processed=%d failed=%d", summary.processed, summary.failed)
    return EmbedBatchResponse(
        success=summary.success,
        processed=summary.processed,
        failed=summary.failed,
        failed_ids=summary.failed_ids,
    )


@router.post("/{source_id:path}", response_model=EmbedSourceResponse)
def post_embed_source(
    source_id: str,
    svc: KBSemanticService = Depends(get_semantic_service),
) -> EmbedSourceResponse:
    source_id = (source_id or "").strip()
    logger.info("POST /embeddings/%s (start)", source_id)

    try:
        ok = svc.embed_source(source_id)
    except StorageUnavailable as e:
        logger.error("POST /embeddings/%s -> 503: %s", source_id, e)
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("POST /embeddings/%s -> 500: %s", source_id, e)
        raise HTTPException(status_code=500, detail=f"embed failed: {e}")

    if not ok:
        logger.warning("POST /embeddings/%s -> 404 (unknown source)", source_id)
        raise HTTPException(status_code=404, detail=f"source '{source_id}' not found")

    return EmbedSourceResponse(
        source_id=source_id,
        success=True,
        chunk_count=svc.embedding_service.chunk_count(source_id),
        using_fallback=svc.is_using_fallback(),
    )
