# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-26
# Description: vectors.py
# -----------------------------------------------------------------------------
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class VectorsRequest(BaseModel):
    texts: List[str] = Field(..., min_length=1, max_length=256)
    # optional caller ids, echoed back per item
    ids: Optional[List[str]] = None

    @model_validator(mode="after")
    def _ids_match_texts(self) -> "VectorsRequest":
        if self.ids is not None and len(self.ids) != len(self.texts):
            raise ValueError(f"ids has {len(self.ids)} entries for {len(self.texts)} texts")
        return self


class VectorItem(BaseModel):
    index: int
    id: Optional[str] = None
    model: str
    used_fallback: bool
    vector: List[float]


class VectorsResponse(BaseModel):
    count: int
    using_fallback: bool
    items: List[VectorItem]
