# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-16
# Description: types.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import List, Optional, TypedDict

from document.KBSource import SourceType


@dataclass(frozen=True)
class RankedResult:
    id: str
    title: str
    type: SourceType
    similarity: float
    chunk_text: Optional[str] = None
    chunk_id: Optional[str] = None
    matched_chunks: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "similarity": self.similarity,
            "chunk_text": self.chunk_text,
            "chunk_id": self.chunk_id,
            "matched_chunks": self.matched_chunks,
        }

    @staticmethod
    def from_dict(d: dict) -> "RankedResult":
        return RankedResult(
            id=d["id"],
            title=d["title"],
            type=SourceType(d["type"]),
            similarity=float(d["similarity"]),
            chunk_text=d.get("chunk_text"),
            chunk_id=d.get("chunk_id"),
            matched_chunks=int(d.get("matched_chunks", 0)),
        )


@dataclass(frozen=True)
class Cluster:
    centroid: List[float]
    member_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"centroid": list(self.centroid), "member_ids": list(self.member_ids)}

    @staticmethod
    def from_dict(d: dict) -> "Cluster":
        return Cluster(centroid=[float(x) for x in d["centroid"]], member_ids=list(d["member_ids"]))


@dataclass(frozen=True)
class EmbeddingOutcome:
    """Result for one item of a batch; items succeed or fail independently."""
    index: int
    success: bool
    id: Optional[str] = None
    embedding: Optional[List[float]] = None
    error: Optional[str] = None
    model: Optional[str] = None


@dataclass(frozen=True)
class BatchEmbedSummary:
    success: bool
    processed: int
    failed: int
    failed_ids: List[str] = field(default_factory=list)


class ServiceStatus(TypedDict):
    model_name: str
    initialized: bool
    using_fallback: bool
    fallback_mode: bool
    load_error: Optional[str]
    total_embeddings: int
    cache_bytes: int
