# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-21
# Updated: 2026-02-26
# Description: test_kb_embedding_service.py
# -----------------------------------------------------------------------------
import logging

import pytest

from chunking.KBChunker import KBChunker
from conftest import DIM, FakeLoader, FakeModel
from document.KBSource import KBSource, SourceType
from embedding.FallbackEmbedder import FallbackEmbedder
from embedding.KBEmbedder import KBEmbedder
from loader.ContentProvider import InMemoryContentProvider
from services.KBEmbeddingService import KBEmbeddingService
from utility.errors import StorageUnavailable
from vectorstore.InMemoryEmbeddingStore import InMemoryEmbeddingStore
from worker.ModelWorkerChannel import ModelWorkerChannel

LONG_NOTE = "\n\n".join(f"Paragraph {i} about knee braces and fitting." for i in range(3))


@pytest.fixture
def content():
    return InMemoryContentProvider([
        KBSource("note-1", LONG_NOTE, SourceType.NOTE, title="Knee braces"),
        KBSource("file-1", "A single short file.", SourceType.FILE),
    ])


@pytest.fixture
def service(content, fake_loader):
    channel = ModelWorkerChannel(fake_loader, model_name="fake-model", init_timeout=5.0, embed_timeout=5.0)
    embedder = KBEmbedder(channel, FallbackEmbedder(DIM))
    svc = KBEmbeddingService(
        content=content,
        store=InMemoryEmbeddingStore(),
        embedder=embedder,
        chunker=KBChunker(max_len=60, overlap_len=10),
    )
    yield svc
    embedder.shutdown()


def test_embed_source_writes_one_record_per_chunk(service):
    progress = []
    assert service.embed_source("note-1", on_progress=lambda done, total: progress.append((done, total))) is True

    records = service.store.get_embeddings("note-1")
    assert [r.chunk_id for r in records] == ["note-1-chunk-0", "note-1-chunk-1", "note-1-chunk-2"]
    assert all(r.source_type == SourceType.NOTE for r in records)
    assert all(r.model == "fake-model" for r in records)
    assert all(r.dimension == DIM for r in records)
    assert records[1].text_chunk == "Paragraph 1 about knee braces and fitting."
    assert progress == [(1, 3), (2, 3), (3, 3)]


def test_re_embedding_replaces_every_chunk(service, content):
    service.embed_source("note-1")
    first_ids = {r.id for r in service.store.get_embeddings("note-1")}
    assert service.chunk_count("note-1") == 3

    # shorter text: stale chunk 2 must not linger
    content.put(KBSource("note-1", "Now just one paragraph.", SourceType.NOTE))
    service.embed_source("note-1")

    records = service.store.get_embeddings("note-1")
    assert [r.chunk_id for r in records] == ["note-1-chunk-0"]
    assert not first_ids & {r.id for r in records}


def test_unknown_source_returns_false(service):
    assert service.embed_source("nope") is False
    assert service.chunk_count("nope") == 0


def test_failed_chunks_use_fallback_and_are_tagged(content, caplog):
    caplog.set_level(logging.DEBUG, logger="tests.embedding_service")
    loader = FakeLoader(FakeModel(fail_on=["Paragraph 1 about knee braces and fitting."]))
    channel = ModelWorkerChannel(loader, model_name="fake-model", init_timeout=5.0, embed_timeout=5.0)
    embedder = KBEmbedder(channel, FallbackEmbedder(DIM))
    svc = KBEmbeddingService(
        content=content,
        store=InMemoryEmbeddingStore(),
        embedder=embedder,
        chunker=KBChunker(max_len=60, overlap_len=10),
        logger=logging.getLogger("tests.embedding_service"),
    )
    try:
        assert svc.embed_source("note-1") is True
        models = [r.model for r in svc.store.get_embeddings("note-1")]
        assert models == ["fake-model", FallbackEmbedder.MODEL_TAG, "fake-model"]
        # the fallback chunk is logged with its offsets and a preview
        assert "Chunk 1 of 'note-1' used fallback: [" in caplog.text
        assert "Paragraph 1 about knee braces" in caplog.text
    finally:
        embedder.shutdown()


def test_embed_sources_counts_failures_and_continues(service):
    progress = []
    summary = service.embed_sources(["note-1", "missing", "file-1"], on_progress=lambda d, t: progress.append(d))

    assert summary.success is False
    assert summary.processed == 2
    assert summary.failed == 1
    assert summary.failed_ids == ["missing"]
    assert progress == [1, 2, 3]
    assert service.chunk_count("file-1") == 1


def test_storage_errors_propagate(service, monkeypatch):
    def unavailable(record):
        raise StorageUnavailable("store offline")

    monkeypatch.setattr(service.store, "put_embedding", unavailable)
    with pytest.raises(StorageUnavailable):
        service.embed_source("file-1")


def test_delete_embeddings_for(service):
    service.embed_source("note-1")
    assert service.delete_embeddings_for("note-1") == 3
    assert service.delete_embeddings_for("note-1") == 0
