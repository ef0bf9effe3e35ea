# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Updated: 2026-02-16
# Description: EmbeddingRecord
# -----------------------------------------------------------------------------
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

import numpy as np

from chunking.KBChunk import KBChunk
from document.KBSource import SourceType


def chunk_id_for(source_id: str, index: int) -> str:
    return f"{source_id}-chunk-{index}"


@dataclass
class EmbeddingRecord:
    """Embedding vector for one chunk of a source + the chunk text and offsets."""
    id: str
    source_id: str
    source_type: SourceType
    chunk_id: str
    vector: np.ndarray
    model: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.vector = np.asarray(self.vector, dtype=np.float32)
        self.source_type = SourceType(self.source_type)

    @property
    def dimension(self) -> int:
        return int(self.vector.shape[0])

    @property
    def text_chunk(self) -> str:
        return self.metadata.get("text_chunk", "")

    @staticmethod
    def for_chunk(
        *,
        source_id: str,
        source_type: SourceType,
        index: int,
        chunk: KBChunk,
        vector,
        model: str,
    ) -> "EmbeddingRecord":
        return EmbeddingRecord(
            id=f"emb-{uuid.uuid4().hex}",
            source_id=source_id,
            source_type=source_type,
            chunk_id=chunk_id_for(source_id, index),
            vector=vector,
            model=model,
            metadata={
                "text_chunk": chunk.text,
                "start_offset": chunk.start,
                "end_offset": chunk.end,
            },
        )

    def to_metadata(self) -> Dict[str, Any]:
        """
        Flat, scalar-only metadata for Chroma/JSON storage.
        The vector is stored separately by the store.
        """
        return {
            "record_id": self.id,
            "source_id": self.source_id,
            "source_type": self.source_type.value,
            "chunk_id": self.chunk_id,
            "model": self.model,
            "created_at": self.created_at.isoformat(),
            "start_offset": int(self.metadata.get("start_offset", 0)),
            "end_offset": int(self.metadata.get("end_offset", 0)),
        }

    @staticmethod
    def from_parts(meta: Dict[str, Any], vector, text_chunk: str) -> "EmbeddingRecord":
        """Inverse of to_metadata(); text_chunk comes back as the stored document."""
        return EmbeddingRecord(
            id=meta["record_id"],
            source_id=meta["source_id"],
            source_type=SourceType(meta["source_type"]),
            chunk_id=meta["chunk_id"],
            vector=vector,
            model=meta["model"],
            created_at=datetime.fromisoformat(meta["created_at"]),
            metadata={
                "text_chunk": text_chunk,
                "start_offset": int(meta.get("start_offset", 0)),
                "end_offset": int(meta.get("end_offset", 0)),
            },
        )
