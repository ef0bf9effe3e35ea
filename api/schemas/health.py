# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-23
# Description: health.py
# -----------------------------------------------------------------------------
from typing import Optional

from pydantic import BaseModel, ConfigDict


class HealthResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: str
    message: str
    model_name: str
    initialized: bool
    using_fallback: bool
    fallback_mode: bool
    load_error: Optional[str] = None
    total_embeddings: int
    cache_bytes: int
