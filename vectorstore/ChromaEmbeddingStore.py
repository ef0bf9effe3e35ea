# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-16
# Updated: 2026-02-20
# Description: ChromaEmbeddingStore
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import chromadb
from chromadb import ClientAPI
from chromadb.api.models import Collection

from config.Config import Config
from embedding.EmbeddingRecord import EmbeddingRecord
from utility.errors import StorageUnavailable
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore


@dataclass
class ChromaEmbeddingStore(EmbeddingStore):
    """
    Embedding records in a Chroma collection, one Chroma id per chunk id.

    Vectors go in `embeddings`, chunk text in `documents` and the rest of the
    record in flat `metadatas`. Client selection:
      - an injected `client` wins (tests use chromadb.EphemeralClient())
      - Chroma Cloud when the cfg carries tenant/database/api key
      - otherwise a local PersistentClient at `path`
    Every Chroma failure is re-raised as StorageUnavailable.
    """
    cfg: Optional[Config] = None
    path: str = "./.kb_chroma"
    collection_name: str = "kb_embeddings"
    client: Optional[ClientAPI] = None
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

        try:
            if self.client is None:
                self.client = self._make_client()
            self.collection: Collection = self.client.get_or_create_collection(
                name=self.collection_name
            )
        except Exception as e:
            self.logger.error("Chroma initialisation failed: %s", e)
            raise StorageUnavailable(f"Chroma unavailable: {e}") from e

        self.logger.info("Chroma collection ready: '%s'", self.collection_name)

    def _make_client(self) -> ClientAPI:
        if self.cfg is not None and self.cfg.chroma_cloud_enabled:
            self.cfg.validate(Config.CHROMA_CLOUD_FIELDS)
            self.logger.info(
                "Initialising Chroma Cloud client (tenant=%s, database=%s)",
                self.cfg.chroma_tenant,
                self.cfg.chroma_database,
            )
            return chromadb.CloudClient(
                tenant=self.cfg.chroma_tenant,
                database=self.cfg.chroma_database,
                api_key=self.cfg.chroma_api_key,
            )

        self.logger.info("Initialising local Chroma client at '%s'", self.path)
        return chromadb.PersistentClient(path=self.path)

    def test_connection(self) -> bool:
        try:
            _ = self.collection.count()
            return True
        except Exception as e:
            self.logger.error("Chroma connection failed: %s", e)
            return False

    def put_embedding(self, record: EmbeddingRecord) -> None:
        try:
            self.collection.upsert(
                ids=[record.chunk_id],
                embeddings=[record.vector.tolist()],
                documents=[record.text_chunk],
                metadatas=[record.to_metadata()],
            )
        except Exception as e:
            self.logger.error("Failed to write embedding '%s': %s", record.chunk_id, e)
            raise StorageUnavailable(f"Could not write embedding '{record.chunk_id}': {e}") from e

    def get_embeddings(self, source_id: Optional[str] = None) -> List[EmbeddingRecord]:
        kwargs: Dict[str, Any] = {"include": ["embeddings", "documents", "metadatas"]}
        if source_id is not None:
            kwargs["where"] = {"source_id": {"$eq": source_id}}

        try:
            res = self.collection.get(**kwargs)
        except Exception as e:
            self.logger.error("Failed to read embeddings (source_id=%s): %s", source_id, e)
            raise StorageUnavailable(f"Could not read embeddings: {e}") from e

        records = self._to_records(res)
        # Chroma returns no guaranteed order; restore write order
        records.sort(key=lambda r: (r.created_at, r.metadata.get("start_offset", 0)))
        return records

    def get_all_embeddings(self) -> List[EmbeddingRecord]:
        return self.get_embeddings()

    @staticmethod
    def _to_records(res: Dict[str, Any]) -> List[EmbeddingRecord]:
        # embeddings may come back as a numpy array: no truthiness tests on it
        ids = res.get("ids")
        ids = ids if ids is not None else []
        embeddings = res.get("embeddings")
        documents = res.get("documents")
        metadatas = res.get("metadatas")

        records: List[EmbeddingRecord] = []
        for i in range(len(ids)):
            meta = metadatas[i] if metadatas is not None else None
            if not meta or embeddings is None:
                continue
            text = documents[i] if documents is not None and documents[i] is not None else ""
            records.append(EmbeddingRecord.from_parts(meta, embeddings[i], text))
        return records

    def delete_embeddings_for(self, source_id: str) -> int:
        """
        Delete all chunks in this collection that belong to the given source_id.
        Returns the number of chunks actually deleted.
        """
        try:
            res: Dict[str, Any] = self.collection.get(
                where={"source_id": {"$eq": source_id}},
                include=[],
            )
        except Exception as e:
            self.logger.error("Failed to get chunks for source_id '%s': %s", source_id, e)
            raise StorageUnavailable(f"Could not read embeddings for '{source_id}': {e}") from e

        ids: List[str] = res.get("ids", []) or []
        if not ids:
            return 0

        # preserves order while de-duplicating
        unique_ids = list(dict.fromkeys(ids))
        try:
            self.collection.delete(ids=unique_ids)
        except Exception as e:
            self.logger.error(
                "Failed to delete %d chunks for source_id '%s': %s", len(unique_ids), source_id, e
            )
            raise StorageUnavailable(f"Could not delete embeddings for '{source_id}': {e}") from e

        self.logger.info(
            "Deleted %d chunks for source_id '%s' from collection '%s'",
            len(unique_ids),
            source_id,
            self.collection_name,
        )
        return len(unique_ids)
