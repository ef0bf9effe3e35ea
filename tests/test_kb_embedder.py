# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-19
# Updated: 2026-02-26
# Description: test_kb_embedder.py
# -----------------------------------------------------------------------------
import threading
import time

import numpy as np
import pytest

from conftest import DIM, FakeLoader, FakeModel, wait_for
from embedding.FallbackEmbedder import FallbackEmbedder
from embedding.KBEmbedder import KBEmbedder
from utility.errors import DimensionMismatch, RequestTimeout, WorkerError
from worker.ModelWorkerChannel import ModelWorkerChannel
from worker.fallback import with_fallback


@pytest.fixture
def make_embedder():
    embedders = []

    def _make(loader):
        channel = ModelWorkerChannel(
            loader, model_name="fake-model", init_timeout=5.0, embed_timeout=5.0, batch_timeout=5.0
        )
        emb = KBEmbedder(channel, FallbackEmbedder(DIM))
        embedders.append(emb)
        return emb

    yield _make
    for emb in embedders:
        emb.shutdown()


def test_with_fallback_passes_through_success():
    assert with_fallback(lambda t: t * 2, lambda: -1, 1.5) == (3.0, False)


def test_with_fallback_substitutes_on_recoverable_errors():
    seen = []

    def timeout_call(t):
        raise RequestTimeout("generate_embedding", t)

    def worker_error_call(t):
        raise WorkerError("boom")

    assert with_fallback(timeout_call, lambda: "fb", 0.1, on_failure=seen.append) == ("fb", True)
    assert with_fallback(worker_error_call, lambda: "fb", 0.1, on_failure=seen.append) == ("fb", True)
    assert [type(e) for e in seen] == [RequestTimeout, WorkerError]


def test_with_fallback_never_hides_dimension_mismatch():
    def mismatch(t):
        raise DimensionMismatch(384, 768)

    with pytest.raises(DimensionMismatch):
        with_fallback(mismatch, lambda: None, 1.0)


def test_real_model_result(make_embedder, fake_loader):
    emb = make_embedder(fake_loader)
    out = emb.embed_one("hello")

    assert out.used_fallback is False
    assert out.model == "fake-model"
    assert out.vector.dtype == np.float32
    assert not emb.is_using_fallback()


def test_one_millisecond_timeout_uses_fallback(make_embedder):
    emb = make_embedder(FakeLoader(FakeModel(delay=0.3)))
    assert emb.initialize() is True

    out = emb.embed_one("slow text", timeout=0.001)

    assert out.used_fallback is True
    assert out.model == FallbackEmbedder.MODEL_TAG
    assert np.array_equal(out.vector, FallbackEmbedder(DIM).embed("slow text"))
    assert emb.is_using_fallback() is True
    # a timeout is not permanent
    assert emb.fallback_mode is False


def test_fallback_flag_follows_last_call(make_embedder):
    emb = make_embedder(FakeLoader(FakeModel(delay=0.2)))
    emb.initialize()

    emb.embed_one("slow", timeout=0.001)
    assert emb.is_using_fallback()

    out = emb.embed_one("patient")
    assert out.used_fallback is False
    assert not emb.is_using_fallback()


def test_load_failure_switches_to_permanent_fallback(make_embedder):
    loader = FakeLoader(fail=True)
    emb = make_embedder(loader)

    first = emb.embed_one("a")
    second = emb.embed_one("b")

    assert first.used_fallback and second.used_fallback
    assert emb.fallback_mode is True
    assert emb.model_name == FallbackEmbedder.MODEL_TAG
    assert emb.fallback_reason
    # the channel is not asked again
    assert loader.loaded == ["fake-model"]


def test_initialize_failure_returns_false(make_embedder):
    emb = make_embedder(FakeLoader(fail=True))
    assert emb.initialize() is False
    assert emb.is_using_fallback()


def test_change_model_leaves_fallback_mode(make_embedder):
    loader = FakeLoader(fail=True)
    emb = make_embedder(loader)
    assert emb.initialize() is False

    loader.fail = False
    assert emb.change_model("good-model") is True
    assert emb.fallback_mode is False
    assert emb.model_name == "good-model"

    out = emb.embed_one("works now")
    assert out.used_fallback is False
    assert out.model == "good-model"


def test_change_model_failure_reports_false(make_embedder):
    loader = FakeLoader()
    emb = make_embedder(loader)
    emb.initialize()

    loader.fail = True
    assert emb.change_model("missing-model") is False


def test_unresponsive_model_costs_only_the_call_timeout(make_embedder):
    gate = threading.Event()
    emb = make_embedder(FakeLoader(gate=gate))

    started = time.monotonic()
    out = emb.embed_one("hello", timeout=0.001)
    elapsed = time.monotonic() - started
    gate.set()

    assert elapsed < 0.5
    assert out.used_fallback is True
    assert out.model == FallbackEmbedder.MODEL_TAG
    assert emb.fallback_mode is False


def test_request_during_background_initialize(make_embedder):
    gate = threading.Event()
    emb = make_embedder(FakeLoader(gate=gate))

    init = threading.Thread(target=emb.initialize)
    init.start()
    assert wait_for(lambda: emb.channel.is_initializing)

    started = time.monotonic()
    early = emb.embed_one("early", timeout=0.05)
    assert time.monotonic() - started < 0.5
    assert early.used_fallback is True
    assert emb.fallback_mode is False

    gate.set()
    init.join(5.0)

    assert emb.channel.is_initialized
    late = emb.embed_one("late")
    assert late.used_fallback is False
    assert late.model == "fake-model"


def test_embed_batch_real_model(make_embedder, fake_loader):
    emb = make_embedder(fake_loader)
    out = emb.embed_batch(["one", "two"], ids=["a", "b"])

    assert [o.model for o in out] == ["fake-model", "fake-model"]
    assert all(o.vector.dtype == np.float32 for o in out)
    assert not emb.is_using_fallback()
    assert emb.embed_batch([]) == []


def test_embed_batch_timeout_falls_back_for_every_item(make_embedder):
    emb = make_embedder(FakeLoader(FakeModel(delay=0.3)))
    assert emb.initialize() is True

    texts = ["first", "second", "third"]
    out = emb.embed_batch(texts, timeout=0.001)

    assert [o.used_fallback for o in out] == [True, True, True]
    assert {o.model for o in out} == {FallbackEmbedder.MODEL_TAG}
    expected = FallbackEmbedder(DIM).embed_many(texts)
    assert all(np.array_equal(o.vector, e) for o, e in zip(out, expected))
    assert emb.is_using_fallback()
    assert emb.fallback_mode is False


def test_embed_batch_failed_item_falls_back_alone(make_embedder):
    emb = make_embedder(FakeLoader(FakeModel(fail_on=["bad"])))

    out = emb.embed_batch(["good", "bad", "also good"])

    assert [o.model for o in out] == ["fake-model", FallbackEmbedder.MODEL_TAG, "fake-model"]
    assert [o.used_fallback for o in out] == [False, True, False]
    assert np.array_equal(out[1].vector, FallbackEmbedder(DIM).embed("bad"))
    assert emb.is_using_fallback()


def test_embed_batch_in_fallback_mode_skips_the_channel(make_embedder):
    loader = FakeLoader(fail=True)
    emb = make_embedder(loader)
    assert emb.initialize() is False

    out = emb.embed_batch(["x", "y"])

    assert all(o.used_fallback for o in out)
    assert loader.loaded == ["fake-model"]
