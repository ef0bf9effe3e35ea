# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-02-23
# Description: AppContainer.py
# -----------------------------------------------------------------------------
from functools import partial
from typing import Optional

import settings
from cache.ResultCache import ResultCache
from chunking.KBChunker import KBChunker
from config.Config import Config
from embedding.FallbackEmbedder import FallbackEmbedder
from embedding.KBEmbedder import KBEmbedder
from embedding.ModelLoader import ModelLoaderFn, load_model
from loader.ContentProvider import ContentProvider, InMemoryContentProvider
from loader.DirectoryContentProvider import DirectoryContentProvider
from services.KBClusterService import KBClusterService
from services.KBEmbeddingService import KBEmbeddingService
from services.KBSemanticService import KBSemanticService
from services.KBSimilarityService import KBSimilarityService
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore
from vectorstore.InMemoryEmbeddingStore import InMemoryEmbeddingStore
from worker.ModelWorkerChannel import ModelWorkerChannel


class AppContainer:
    """
    Owns heavy object instantiation and application wiring.

    One container per app: create_app() stores it on app.state and the FastAPI
    dependencies read it from there. Any collaborator can be injected (tests
    pass an in-memory provider, a fake model loader and a cache without a file).
    """

    def __init__(
        self,
        *,
        cfg: Optional[Config] = None,
        content: Optional[ContentProvider] = None,
        store: Optional[EmbeddingStore] = None,
        model_loader: Optional[ModelLoaderFn] = None,
        cache: Optional[ResultCache] = None,
        cluster_seed: Optional[int] = None,
    ) -> None:
        self.logger = get_class_logger(self.__class__)

        # Configuration
        self.cfg = cfg or Config.from_env()
        self.logger.info("Config: %s", self.cfg.summary())

        # Content (notes + files)
        self.content = content or self._build_content()

        # Embedding store
        self.store = store or self._build_store()

        # Model worker + fallback
        self.channel = ModelWorkerChannel(
            model_loader or partial(load_model, cfg=self.cfg),
            model_name=settings.MODEL_NAME,
            init_timeout=settings.WORKER_TIMEOUTS["init"],
            embed_timeout=settings.WORKER_TIMEOUTS["embed"],
            batch_timeout=settings.WORKER_TIMEOUTS["batch"],
        )
        self.fallback = FallbackEmbedder(dimension=settings.EMBEDDING_DIM)
        self.embedder = KBEmbedder(self.channel, self.fallback)

        self.chunker = KBChunker(max_len=settings.CHUNK_MAX_LEN, overlap_len=settings.CHUNK_OVERLAP)

        self.cache = cache or ResultCache(
            max_bytes=int(settings.CACHE_MAX_MB * 1024 * 1024),
            default_ttl=settings.CACHE_TTL_SECONDS,
            cleanup_interval=settings.CACHE_CLEANUP_INTERVAL,
            persist_path=settings.CACHE_PERSIST_PATH or None,
            persist_max_bytes=settings.CACHE_PERSIST_MAX_BYTES,
        )

        self.embedding_service = KBEmbeddingService(
            content=self.content,
            store=self.store,
            embedder=self.embedder,
            chunker=self.chunker,
        )

        self.similarity_service = KBSimilarityService(
            store=self.store,
            embedder=self.embedder,
            content=self.content,
        )

        self.cluster_service = KBClusterService(seed=cluster_seed)

        self.semantic_service = KBSemanticService(
            content=self.content,
            store=self.store,
            embedder=self.embedder,
            embedding_service=self.embedding_service,
            similarity_service=self.similarity_service,
            cluster_service=self.cluster_service,
            cache=self.cache,
        )

    @staticmethod
    def _build_content() -> ContentProvider:
        if settings.CONTENT_DIR:
            return DirectoryContentProvider(settings.CONTENT_DIR)
        return InMemoryContentProvider()

    def _build_store(self) -> EmbeddingStore:
        if settings.STORE_BACKEND == "chroma":
            # chromadb is only imported when this backend is selected
            from vectorstore.ChromaEmbeddingStore import ChromaEmbeddingStore

            return ChromaEmbeddingStore(
                cfg=self.cfg,
                path=settings.CHROMA_PATH,
                collection_name=settings.CHROMA_COLLECTION,
            )
        return InMemoryEmbeddingStore()
