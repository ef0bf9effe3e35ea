# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Description: KBSemanticService
# -----------------------------------------------------------------------------
import hashlib
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np

import settings
from cache.ResultCache import EMBEDDINGS, GRAPH_DATA, QUERY_RESULTS, SIMILAR_NOTES, ResultCache
from embedding.KBEmbedder import EmbeddedVector, KBEmbedder
from loader.ContentProvider import ContentProvider
from loader.types import BatchEmbedSummary, Cluster, RankedResult, ServiceStatus
from services.KBClusterService import KBClusterService
from services.KBEmbeddingService import KBEmbeddingService, ProgressFn
from services.KBSimilarityService import KBSimilarityService
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore

# namespaces whose contents depend on stored embeddings
DERIVED_NAMESPACES = (SIMILAR_NOTES, QUERY_RESULTS, GRAPH_DATA)


class KBSemanticService:
    """
    Single entry point used by the API (and any other caller).

    Wraps the embedding, similarity and cluster services with the result cache:
    reads go through the cache, anything that changes embeddings invalidates
    the derived namespaces.
    """

    def __init__(
        self,
        *,
        content: ContentProvider,
        store: EmbeddingStore,
        embedder: KBEmbedder,
        embedding_service: KBEmbeddingService,
        similarity_service: KBSimilarityService,
        cluster_service: KBClusterService,
        cache: ResultCache,
        defaults: Optional[Mapping[str, Any]] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.content = content
        self.store = store
        self.embedder = embedder
        self.embedding_service = embedding_service
        self.similarity_service = similarity_service
        self.cluster_service = cluster_service
        self.cache = cache
        self.defaults = dict(settings.SIMILARITY_DEFAULTS)
        self.defaults.update(defaults or {})
        self.logger = logger or get_class_logger(self.__class__)

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------
    def initialize(self, model_name: Optional[str] = None, on_progress: Optional[Callable] = None) -> bool:
        return self.embedder.initialize(model_name, on_progress)

    def change_model(self, model_name: str) -> bool:
        ok = self.embedder.change_model(model_name)
        if ok:
            # vectors from different models are not comparable
            self._invalidate()
        return ok

    def is_using_fallback(self) -> bool:
        return self.embedder.is_using_fallback()

    def status(self) -> ServiceStatus:
        return ServiceStatus(
            model_name=self.embedder.model_name,
            initialized=self.embedder.channel.is_initialized,
            using_fallback=self.embedder.is_using_fallback(),
            fallback_mode=self.embedder.fallback_mode,
            load_error=self.embedder.fallback_reason,
            total_embeddings=len(self.store.get_all_embeddings()),
            cache_bytes=self.cache.get_memory_usage(),
        )

    def start(self) -> None:
        self.cache.start()

    def shutdown(self) -> None:
        self.logger.info("Shutting down semantic service")
        self.embedder.shutdown()
        self.cache.stop()

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------
    def embed_source(self, source_id: str, on_progress: Optional[ProgressFn] = None) -> bool:
        ok = self.embedding_service.embed_source(source_id, on_progress)
        if ok:
            self._invalidate()
        return ok

    def embed_sources(self, source_ids: List[str], on_progress: Optional[ProgressFn] = None) -> BatchEmbedSummary:
        summary = self.embedding_service.embed_sources(source_ids, on_progress)
        if summary.processed:
            self._invalidate()
        return summary

    def embed_all(self, on_progress: Optional[ProgressFn] = None) -> BatchEmbedSummary:
        return self.embed_sources(self.content.list_source_ids(), on_progress)

    def embed_texts(self, texts: Sequence[str], ids: Optional[Sequence[Optional[str]]] = None) -> List[EmbeddedVector]:
        """
        Vectors for arbitrary texts in one worker round-trip.
        Model vectors are cached per (model, text); fallback vectors are not.
        """
        texts = list(texts)
        model = self.embedder.model_name
        keys = [f"{model}|{hashlib.sha256(t.encode('utf-8')).hexdigest()}" for t in texts]

        vectors: List[Optional[EmbeddedVector]] = [None] * len(texts)
        missing: List[int] = []
        for i, key in enumerate(keys):
            cached = self.cache.get(EMBEDDINGS, key)
            if cached is None:
                missing.append(i)
            else:
                vectors[i] = EmbeddedVector(np.asarray(cached, dtype=np.float32), model, False)

        if missing:
            fresh = self.embedder.embed_batch(
                [texts[i] for i in missing],
                [ids[i] for i in missing] if ids is not None else None,
            )
            for i, embedded in zip(missing, fresh):
                vectors[i] = embedded
                if not embedded.used_fallback:
                    self.cache.set(EMBEDDINGS, keys[i], embedded.vector.tolist())

        self.logger.debug("Embedded %d text(s), %d from cache", len(texts), len(texts) - len(missing))
        return vectors

    def _invalidate(self) -> None:
        for ns in DERIVED_NAMESPACES:
            self.cache.clear_namespace(ns)

    # ------------------------------------------------------------------
    # Queries (cached)
    # ------------------------------------------------------------------
    def find_similar_to_source(
        self,
        source_id: str,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[RankedResult]:
        threshold = self.defaults["similar_threshold"] if threshold is None else threshold
        limit = self.defaults["similar_limit"] if limit is None else limit
        key = f"{source_id}|{threshold}|{limit}"

        cached = self.cache.get(SIMILAR_NOTES, key)
        if cached is not None:
            return [RankedResult.from_dict(d) for d in cached]

        results = self.similarity_service.find_similar_to_source(source_id, threshold, limit)
        self.cache.set(SIMILAR_NOTES, key, [r.to_dict() for r in results], persist=True)
        return results

    def semantic_search(
        self,
        query: str,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[RankedResult]:
        threshold = self.defaults["search_threshold"] if threshold is None else threshold
        limit = self.defaults["search_limit"] if limit is None else limit
        key = f"{query}|{threshold}|{limit}"

        cached = self.cache.get(QUERY_RESULTS, key)
        if cached is not None:
            return [RankedResult.from_dict(d) for d in cached]

        results = self.similarity_service.semantic_search(query, threshold, limit)
        # a fallback query vector is not semantic; do not keep its ranking around
        if not self.embedder.is_using_fallback():
            self.cache.set(QUERY_RESULTS, key, [r.to_dict() for r in results])
        return results

    def cluster_all(self, max_k: Optional[int] = None) -> List[Cluster]:
        max_k = self.defaults["cluster_max_k"] if max_k is None else max_k
        key = f"sources|{max_k}"

        cached = self.cache.get(GRAPH_DATA, key)
        if cached is not None:
            return [Cluster.from_dict(d) for d in cached]

        clusters = self.cluster_service.cluster_sources(self.store.get_all_embeddings(), max_k)
        self.cache.set(GRAPH_DATA, key, [c.to_dict() for c in clusters])
        return clusters

    # ------------------------------------------------------------------
    # Cache passthrough
    # ------------------------------------------------------------------
    def cache_get(self, namespace: str, key: str) -> Any:
        return self.cache.get(namespace, key)

    def cache_set(
        self,
        namespace: str,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        persist: bool = False,
    ) -> None:
        self.cache.set(namespace, key, value, ttl=ttl, persist=persist)

    def cache_clear(self, namespace: Optional[str] = None) -> int:
        if namespace is None:
            count = self.cache.get_stats()["entries"]
            self.cache.clear()
            return count
        return self.cache.clear_namespace(namespace)

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()
