# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Description: embeddings.py
# -----------------------------------------------------------------------------
from typing import List, Optional

from pydantic import BaseModel, Field


class EmbedSourceResponse(BaseModel):
    source_id: str
    success: bool
    chunk_count: int
    using_fallback: bool


class EmbedBatchRequest(BaseModel):
    # None embeds every source the content provider knows
    source_ids: Optional[List[str]] = None


class EmbedBatchResponse(BaseModel):
    success: bool
    processed: int
    failed: int
    failed_ids: List[str] = Field(default_factory=list)
