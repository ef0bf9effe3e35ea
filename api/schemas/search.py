# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-23
# Description: search.py
# -----------------------------------------------------------------------------
from typing import List, Optional

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    threshold: Optional[float] = Field(None, ge=-1.0, le=1.0)
    limit: Optional[int] = Field(None, ge=1, le=100)


class RankedHit(BaseModel):
    id: str
    title: str
    type: str
    similarity: float
    chunk_text: Optional[str] = None
    chunk_id: Optional[str] = None
    matched_chunks: int = 0


class SearchResponse(BaseModel):
    query: str
    count: int
    using_fallback: bool
    results: List[RankedHit]


class SimilarResponse(BaseModel):
    source_id: str
    count: int
    results: List[RankedHit]
