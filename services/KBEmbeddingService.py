# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-21
# Updated: 2026-02-26
# Description: KBEmbeddingService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from chunking.KBChunker import KBChunker
from embedding.EmbeddingRecord import EmbeddingRecord
from embedding.KBEmbedder import KBEmbedder
from loader.ContentProvider import ContentProvider
from loader.types import BatchEmbedSummary
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore

ProgressFn = Callable[[int, int], None]


class KBEmbeddingService:
    """
    Owns the embed pipeline for notes and files:
      - read text + type (via ContentProvider)
      - drop every existing record for the source
      - chunk
      - embed each chunk (real model, or fallback for that chunk)
      - write records into the embedding store
    """

    def __init__(
        self,
        *,
        content: ContentProvider,
        store: EmbeddingStore,
        embedder: KBEmbedder,
        chunker: KBChunker,
        logger: logging.Logger | None = None,
    ) -> None:
        self.content = content
        self.store = store
        self.embedder = embedder
        self.chunker = chunker
        self.logger = logger or get_class_logger(self.__class__)

    def embed_source(self, source_id: str, on_progress: Optional[ProgressFn] = None) -> bool:
        """
        Re-embed one source. Returns False when the source is unknown.
        StorageUnavailable from the store propagates.
        """
        try:
            text = self.content.get_text(source_id)
            source_type = self.content.get_source_type(source_id)
        except KeyError as e:
            self.logger.error("Cannot embed source '%s': %s", source_id, e)
            return False

        deleted = self.store.delete_embeddings_for(source_id)
        chunks = self.chunker.chunk(text)
        total = len(chunks)
        fallback_chunks = 0

        for i, chunk in enumerate(chunks):
            embedded = self.embedder.embed_one(chunk.text)
            self.store.put_embedding(
                EmbeddingRecord.for_chunk(
                    source_id=source_id,
                    source_type=source_type,
                    index=i,
                    chunk=chunk,
                    vector=embedded.vector,
                    model=embedded.model,
                )
            )
            if embedded.used_fallback:
                fallback_chunks += 1
                self.logger.debug("Chunk %d of '%s' used fallback: %s", i, source_id, chunk.short_preview())
            if on_progress is not None:
                on_progress(i + 1, total)

        self.logger.info(
            "Embedded source '%s': %d chunks (%d fallback), replaced %d old records",
            source_id,
            total,
            fallback_chunks,
            deleted,
        )
        return True

    def embed_sources(
        self,
        source_ids: Iterable[str],
        on_progress: Optional[ProgressFn] = None,
    ) -> BatchEmbedSummary:
        ids = list(source_ids)
        processed = 0
        failed_ids: List[str] = []

        for i, source_id in enumerate(ids):
            try:
                ok = self.embed_source(source_id)
            except Exception as e:
                self.logger.error("Failed to embed source '%s': %s", source_id, e, exc_info=True)
                ok = False

            if ok:
                processed += 1
            else:
                failed_ids.append(source_id)

            if on_progress is not None:
                on_progress(i + 1, len(ids))

        self.logger.info(
            "Batch embed complete: %d/%d sources embedded, %d failed",
            processed,
            len(ids),
            len(failed_ids),
        )
        return BatchEmbedSummary(
            success=not failed_ids,
            processed=processed,
            failed=len(failed_ids),
            failed_ids=failed_ids,
        )

    def delete_embeddings_for(self, source_id: str) -> int:
        return self.store.delete_embeddings_for(source_id)

    def chunk_count(self, source_id: str) -> int:
        return len(self.store.get_embeddings(source_id))
