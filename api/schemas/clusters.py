# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Description: clusters.py
# -----------------------------------------------------------------------------
from typing import List, Optional

from pydantic import BaseModel


class ClusterInfo(BaseModel):
    size: int
    member_ids: List[str]
    centroid: Optional[List[float]] = None


class ClustersResponse(BaseModel):
    count: int
    clusters: List[ClusterInfo]
