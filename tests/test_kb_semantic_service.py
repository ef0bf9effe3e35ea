# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-23
# Updated: 2026-02-26
# Description: test_kb_semantic_service.py
# -----------------------------------------------------------------------------
import numpy as np
import pytest

from api.AppContainer import AppContainer
from cache.ResultCache import EMBEDDINGS, GRAPH_DATA, QUERY_RESULTS, SIMILAR_NOTES, ResultCache
from conftest import FakeLoader, FakeModel
from document.KBSource import KBSource, SourceType
from embedding.FallbackEmbedder import FallbackEmbedder
from loader.ContentProvider import InMemoryContentProvider
from loader.types import RankedResult

SOURCES = [
    KBSource("n1", "Knee brace fitting guide.", SourceType.NOTE, title="Knee brace"),
    KBSource("n2", "Ankle support sizing notes.", SourceType.NOTE),
    KBSource("f1", "Shoulder sling instructions.", SourceType.FILE),
]


@pytest.fixture
def container(clock):
    c = AppContainer(
        content=InMemoryContentProvider(SOURCES),
        model_loader=FakeLoader(FakeModel()),
        cache=ResultCache(cleanup_interval=0, clock=clock),
        cluster_seed=11,
    )
    c.channel.init_timeout = 5.0
    c.channel.embed_timeout = 5.0
    yield c
    c.semantic_service.shutdown()


@pytest.fixture
def svc(container):
    return container.semantic_service


def test_embed_all_then_status(svc):
    assert svc.initialize() is True
    summary = svc.embed_all()

    assert summary.success
    assert summary.processed == 3
    status = svc.status()
    assert status["initialized"] is True
    assert status["using_fallback"] is False
    assert status["fallback_mode"] is False
    assert status["total_embeddings"] == 3
    assert status["model_name"] == svc.embedder.channel.model_name


def test_similar_results_are_cached_and_invalidated(svc):
    svc.embed_all()

    first = svc.find_similar_to_source("n1", threshold=-1.0, limit=5)
    assert {r.id for r in first} == {"n2", "f1"}
    assert svc.cache.get_stats()["namespaces"][SIMILAR_NOTES]["entries"] == 1

    second = svc.find_similar_to_source("n1", threshold=-1.0, limit=5)
    assert second == first
    assert all(isinstance(r, RankedResult) for r in second)
    assert svc.cache.get_stats()["namespaces"][SIMILAR_NOTES]["hits"] == 1

    # embedding changes invalidate derived results
    svc.embed_source("n2")
    assert svc.cache.get_keys(SIMILAR_NOTES) == []


def test_search_and_clusters_are_cached(svc):
    svc.embed_all()

    results = svc.semantic_search("knee", threshold=-1.0, limit=2)
    assert len(results) == 2
    assert len(svc.cache.get_keys(QUERY_RESULTS)) == 1

    clusters = svc.cluster_all()
    assert sorted(m for c in clusters for m in c.member_ids) == ["f1", "n1", "n2"]
    assert svc.cluster_all() == clusters
    assert len(svc.cache.get_keys(GRAPH_DATA)) == 1


def test_fallback_search_results_are_not_cached(clock):
    c = AppContainer(
        content=InMemoryContentProvider(SOURCES),
        model_loader=FakeLoader(fail=True),
        cache=ResultCache(cleanup_interval=0, clock=clock),
    )
    svc = c.semantic_service
    try:
        assert svc.initialize() is False
        svc.embed_all()

        assert svc.is_using_fallback()
        assert svc.status()["model_name"] == FallbackEmbedder.MODEL_TAG
        assert all(r.model == FallbackEmbedder.MODEL_TAG for r in c.store.get_all_embeddings())

        svc.semantic_search("knee", threshold=-1.0)
        assert svc.cache.get_keys(QUERY_RESULTS) == []
    finally:
        svc.shutdown()


def test_change_model_clears_derived_cache(svc):
    svc.embed_all()
    svc.find_similar_to_source("n1", threshold=-1.0)
    assert svc.change_model("another-model") is True
    assert svc.cache.get_keys(SIMILAR_NOTES) == []
    assert svc.status()["model_name"] == "another-model"


def test_cache_passthrough(svc):
    svc.cache_set("embeddings", "k", [1, 2, 3])
    assert svc.cache_get("embeddings", "k") == [1, 2, 3]
    svc.cache_set(QUERY_RESULTS, "q", "r")

    assert svc.cache_clear("embeddings") == 1
    assert svc.cache_get("embeddings", "k") is None
    assert svc.cache_clear() == 1
    assert svc.cache_stats()["entries"] == 0


def test_embed_texts_caches_model_vectors(svc):
    first = svc.embed_texts(["knee brace", "ankle support"], ids=["a", "b"])
    assert [v.used_fallback for v in first] == [False, False]
    assert svc.cache.get_stats()["namespaces"][EMBEDDINGS]["entries"] == 2

    second = svc.embed_texts(["knee brace", "new text"])
    assert np.array_equal(second[0].vector, first[0].vector)
    assert second[0].model == first[0].model
    stats = svc.cache.get_stats()["namespaces"][EMBEDDINGS]
    assert stats["hits"] == 1
    assert stats["entries"] == 3


def test_embed_texts_does_not_cache_fallback_vectors(clock):
    c = AppContainer(
        content=InMemoryContentProvider(SOURCES),
        model_loader=FakeLoader(fail=True),
        cache=ResultCache(cleanup_interval=0, clock=clock),
    )
    svc = c.semantic_service
    try:
        out = svc.embed_texts(["knee", "ankle"])
        assert all(v.used_fallback for v in out)
        assert all(v.model == FallbackEmbedder.MODEL_TAG for v in out)
        assert svc.cache.get_keys(EMBEDDINGS) == []
    finally:
        svc.shutdown()
