# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Description: clusters.py
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_semantic_service
from api.schemas.clusters import ClusterInfo, ClustersResponse
from services.KBSemanticService import KBSemanticService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clusters", tags=["clusters"])


@router.get("", response_model=ClustersResponse)
def get_clusters(
    max_k: Optional[int] = Query(None, ge=1, le=50),
    include_centroids: bool = Query(False, description="Include centroid vectors"),
    svc: KBSemanticService = Depends(get_semantic_service),
) -> ClustersResponse:
    try:
        clusters = svc.cluster_all(max_k)
    except Exception as e:
        logger.exception("GET /clusters -> 500: %s", e)
        raise HTTPException(status_code=500, detail=f"clustering failed: {e}")

    infos = [
        ClusterInfo(
            size=len(c.member_ids),
            member_ids=c.member_ids,
            centroid=c.centroid if include_centroids else None,
        )
        for c in clusters
    ]
    return ClustersResponse(count=len(infos), clusters=infos)
