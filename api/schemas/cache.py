# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Description: cache.py
# -----------------------------------------------------------------------------
from typing import Dict, Optional

from pydantic import BaseModel


class NamespaceStats(BaseModel):
    entries: int
    bytes: int
    hits: int
    misses: int


class CacheStatsResponse(BaseModel):
    total_bytes: int
    max_bytes: int
    entries: int
    last_cleaned: Optional[float] = None
    namespaces: Dict[str, NamespaceStats]


class CacheClearResponse(BaseModel):
    namespace: Optional[str] = None
    removed: int
