# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-20
# Description: InMemoryEmbeddingStore
# -----------------------------------------------------------------------------
import logging
import threading
from typing import Dict, List, Optional

from embedding.EmbeddingRecord import EmbeddingRecord
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore


class InMemoryEmbeddingStore(EmbeddingStore):
    """
    Process-local store keyed by chunk id. Iteration follows insertion order,
    so similarity scans see chunks in the order they were written.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._records: Dict[str, EmbeddingRecord] = {}
        self._lock = threading.Lock()
        self.logger = logger or get_class_logger(self.__class__)

    def get_embeddings(self, source_id: Optional[str] = None) -> List[EmbeddingRecord]:
        with self._lock:
            if source_id is None:
                return list(self._records.values())
            return [r for r in self._records.values() if r.source_id == source_id]

    def get_all_embeddings(self) -> List[EmbeddingRecord]:
        return self.get_embeddings()

    def put_embedding(self, record: EmbeddingRecord) -> None:
        with self._lock:
            # one record per chunk id; a rewrite moves the chunk to the end
            self._records.pop(record.chunk_id, None)
            self._records[record.chunk_id] = record

    def delete_embeddings_for(self, source_id: str) -> int:
        with self._lock:
            doomed = [cid for cid, r in self._records.items() if r.source_id == source_id]
            for cid in doomed:
                del self._records[cid]
        if doomed:
            self.logger.debug("Deleted %d embeddings for source '%s'", len(doomed), source_id)
        return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
