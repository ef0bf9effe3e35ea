# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-15
# Updated: 2026-02-20
# Description: EmbeddingStore
# -----------------------------------------------------------------------------

from typing import List, Optional, Protocol, runtime_checkable

from embedding.EmbeddingRecord import EmbeddingRecord


@runtime_checkable
class EmbeddingStore(Protocol):
    def get_embeddings(self, source_id: Optional[str] = None) -> List[EmbeddingRecord]:
        ...

    def put_embedding(self, record: EmbeddingRecord) -> None:
        ...

    def delete_embeddings_for(self, source_id: str) -> int:
        ...

    def get_all_embeddings(self) -> List[EmbeddingRecord]:
        ...
