# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-22
# Description: KBSimilarityService
# -----------------------------------------------------------------------------
import logging
from collections import Counter
from typing import Dict, List, Optional

import numpy as np

from embedding.EmbeddingRecord import EmbeddingRecord
from embedding.KBEmbedder import KBEmbedder
from loader.ContentProvider import ContentProvider
from loader.types import RankedResult
from utility.logging_utils import get_class_logger
from utility.vector_math import as_matrix, cosine_similarity_matrix
from vectorstore.EmbeddingStore import EmbeddingStore


class KBSimilarityService:
    """
    Nearest-neighbour queries over the embedding store.

    Source vs source scores are the mean of every chunk pair at or above the
    threshold; query vs source scores are the best single chunk.
    """

    def __init__(
        self,
        *,
        store: EmbeddingStore,
        embedder: KBEmbedder,
        content: Optional[ContentProvider] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.content = content
        self.logger = logger or get_class_logger(self.__class__)

    def find_similar_to_source(
        self,
        source_id: str,
        threshold: float = 0.7,
        limit: int = 5,
    ) -> List[RankedResult]:
        records = self.store.get_all_embeddings()
        own = [r for r in records if r.source_id == source_id]
        if not own:
            self.logger.info("No embeddings for source '%s'; nothing to compare", source_id)
            return []

        # group other sources' chunks, first-seen order
        others: Dict[str, List[EmbeddingRecord]] = {}
        for r in records:
            if r.source_id != source_id:
                others.setdefault(r.source_id, []).append(r)

        own_matrix = as_matrix([r.vector for r in own])
        results: List[RankedResult] = []

        for other_id, chunks in others.items():
            scores = cosine_similarity_matrix(own_matrix, as_matrix([r.vector for r in chunks]))
            qualifying = scores >= threshold
            if not qualifying.any():
                continue

            # best chunk of the other source, for display
            best = int(np.unravel_index(np.argmax(scores), scores.shape)[1])
            results.append(
                self._result(
                    chunks[best],
                    similarity=float(scores[qualifying].mean()),
                    matched_chunks=int(qualifying.any(axis=0).sum()),
                )
            )

        results.sort(key=lambda r: r.similarity, reverse=True)
        self.logger.debug(
            "Similar to '%s': %d/%d sources at >= %.2f", source_id, len(results), len(others), threshold
        )
        return results[:limit]

    def semantic_search(
        self,
        query: str,
        threshold: float = 0.6,
        limit: int = 10,
    ) -> List[RankedResult]:
        if not query or not query.strip():
            return []

        records = self.store.get_all_embeddings()
        if not records:
            return []

        embedded = self.embedder.embed_one(query)
        scores = cosine_similarity_matrix(embedded.vector, as_matrix([r.vector for r in records]))[0]

        hits = [(float(s), r) for s, r in zip(scores, records) if s >= threshold]
        hits.sort(key=lambda h: h[0], reverse=True)
        per_source = Counter(r.source_id for _, r in hits)

        results: List[RankedResult] = []
        seen = set()
        for score, rec in hits:
            if rec.source_id in seen:
                continue
            seen.add(rec.source_id)
            results.append(self._result(rec, similarity=score, matched_chunks=per_source[rec.source_id]))
            if len(results) >= limit:
                break

        self.logger.info(
            "Search %r: %d hits across %d sources (fallback=%s)",
            query[:80],
            len(hits),
            len(per_source),
            embedded.used_fallback,
        )
        return results

    def _title(self, source_id: str) -> str:
        if self.content is None:
            return source_id
        try:
            return self.content.get_title(source_id) or source_id
        except KeyError:
            return source_id

    def _result(self, rec: EmbeddingRecord, *, similarity: float, matched_chunks: int) -> RankedResult:
        return RankedResult(
            id=rec.source_id,
            title=self._title(rec.source_id),
            type=rec.source_type,
            similarity=similarity,
            chunk_text=rec.text_chunk,
            chunk_id=rec.chunk_id,
            matched_chunks=matched_chunks,
        )
