# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-23
# Description: health.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_semantic_service
from api.schemas.health import HealthResponse
from services.KBSemanticService import KBSemanticService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health_check(svc: KBSemanticService = Depends(get_semantic_service)) -> HealthResponse:
    try:
        status = svc.status()
    except Exception as e:
        logger.exception("GET /health -> 500: %s", e)
        raise HTTPException(status_code=500, detail=f"health check failed: {e}")

    message = "KB semantic API running"
    if status["fallback_mode"]:
        message += " (fallback embeddings only)"
    return HealthResponse(status="ok", message=message, **status)
