# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-18
# Updated: 2026-02-26
# Description: test_model_worker_channel.py
# -----------------------------------------------------------------------------
import threading
import time

import numpy as np
import pytest

from conftest import DIM, FakeLoader, FakeModel, wait_for
from utility.errors import ChannelTerminated, ModelLoadFailure, RequestTimeout, WorkerError
from worker.EmbeddingWorker import EmbeddingWorker
from worker.ModelWorkerChannel import ModelWorkerChannel


@pytest.fixture
def make_channel():
    channels = []

    def _make(loader, **kwargs):
        kwargs.setdefault("model_name", "fake-model")
        kwargs.setdefault("init_timeout", 5.0)
        kwargs.setdefault("embed_timeout", 5.0)
        kwargs.setdefault("batch_timeout", 5.0)
        ch = ModelWorkerChannel(loader, **kwargs)
        channels.append(ch)
        return ch

    yield _make
    for ch in channels:
        ch.terminate()


def test_initialize_then_embed(make_channel, fake_loader, fake_model):
    ch = make_channel(fake_loader)

    assert ch.initialize() is True
    assert ch.is_initialized
    assert not ch.is_initializing
    assert fake_loader.loaded == ["fake-model"]

    vec = ch.embed_one("hello world")
    assert len(vec) == DIM
    expected = fake_model.encode(["hello world"])[0]
    assert np.allclose(vec, expected)
    assert ch.pending_count == 0


def test_embed_initializes_on_first_use(make_channel, fake_loader):
    ch = make_channel(fake_loader)
    ch.embed_one("first")
    ch.embed_one("second")
    assert fake_loader.loaded == ["fake-model"]


def test_concurrent_initialize_loads_model_once(make_channel):
    gate = threading.Event()
    loader = FakeLoader(gate=gate)
    ch = make_channel(loader)

    results = []
    threads = [threading.Thread(target=lambda: results.append(ch.initialize())) for _ in range(5)]
    for t in threads:
        t.start()

    assert wait_for(lambda: ch.is_initializing)
    gate.set()
    for t in threads:
        t.join(5.0)

    assert results == [True] * 5
    assert loader.loaded == ["fake-model"]


def test_progress_is_forwarded_to_observer(make_channel, fake_loader):
    events = []
    ch = make_channel(fake_loader)
    ch.initialize(on_progress=events.append)

    statuses = [e.status for e in events]
    assert statuses[0] == "Initializing embedding model 'fake-model'..."
    assert statuses[-1] == "Model initialized successfully"

    events.clear()
    ch.embed_batch([f"text {i}" for i in range(7)])
    counts = [(e.completed, e.total) for e in events]
    assert counts == [(0, 7), (5, 7), (7, 7)]


def test_batch_items_fail_independently(make_channel):
    loader = FakeLoader(FakeModel(fail_on=["bad"]))
    ch = make_channel(loader)

    outcomes = ch.embed_batch(["good", "bad", "also good"], ids=["n1", "n2", "n3"])

    assert [o.index for o in outcomes] == [0, 1, 2]
    assert [o.id for o in outcomes] == ["n1", "n2", "n3"]
    assert [o.success for o in outcomes] == [True, False, True]
    assert "bad" in outcomes[1].error
    assert outcomes[1].embedding is None
    assert len(outcomes[0].embedding) == DIM
    assert outcomes[0].model == "fake-model"


def test_empty_batch_needs_no_worker(make_channel, fake_loader):
    ch = make_channel(fake_loader)
    assert ch.embed_batch([]) == []
    assert fake_loader.loaded == []


def test_empty_text_is_a_worker_error(make_channel, fake_loader):
    ch = make_channel(fake_loader)
    with pytest.raises(WorkerError):
        ch.embed_one("")


def test_timeout_raises_and_clears_pending(make_channel):
    loader = FakeLoader(FakeModel(delay=0.5))
    ch = make_channel(loader)
    ch.initialize()

    with pytest.raises(RequestTimeout) as exc:
        ch.embed_one("slow", timeout=0.05)

    assert exc.value.request_type == "generate_embedding"
    assert ch.pending_count == 0


def test_terminate_rejects_pending_requests(make_channel):
    loader = FakeLoader(FakeModel(delay=1.0))
    ch = make_channel(loader, join_timeout=0.01)
    ch.initialize()

    errors = []

    def call():
        try:
            ch.embed_one("slow")
        except Exception as e:
            errors.append(e)

    t = threading.Thread(target=call)
    t.start()
    assert wait_for(lambda: ch.pending_count == 1)

    ch.terminate()
    t.join(5.0)

    assert len(errors) == 1
    assert isinstance(errors[0], ChannelTerminated)
    assert ch.pending_count == 0
    assert not ch.is_initialized

    # idempotent
    ch.terminate()


def test_load_failure_is_remembered(make_channel):
    loader = FakeLoader(fail=True)
    ch = make_channel(loader)

    with pytest.raises(ModelLoadFailure):
        ch.initialize()
    with pytest.raises(ModelLoadFailure):
        ch.initialize()
    with pytest.raises(ModelLoadFailure):
        ch.embed_one("anything")

    assert loader.loaded == ["fake-model"]
    assert ch.load_error is not None
    assert not ch.is_initialized


def test_thread_start_failure_is_a_load_failure(make_channel, fake_loader, monkeypatch):
    def refuse(self):
        raise RuntimeError("can't start new thread")

    monkeypatch.setattr(EmbeddingWorker, "start", refuse)
    ch = make_channel(fake_loader)

    with pytest.raises(ModelLoadFailure):
        ch.initialize()
    assert fake_loader.loaded == []


def test_change_model(make_channel, fake_loader):
    ch = make_channel(fake_loader)
    ch.initialize()

    # same name: nothing to do
    assert ch.change_model("fake-model") is True
    assert fake_loader.loaded == ["fake-model"]

    assert ch.change_model("other-model") is True
    assert ch.model_name == "other-model"
    assert fake_loader.loaded == ["fake-model", "other-model"]
    assert len(ch.embed_one("still works")) == DIM


def test_change_model_before_initialize_loads_new_model(make_channel, fake_loader):
    ch = make_channel(fake_loader)
    assert ch.change_model("other-model") is True
    assert fake_loader.loaded == ["other-model"]
    assert ch.is_initialized


def test_unresponsive_load_fails_after_init_timeout(make_channel):
    gate = threading.Event()
    loader = FakeLoader(gate=gate)
    ch = make_channel(loader, init_timeout=0.2)

    started = time.monotonic()
    with pytest.raises(ModelLoadFailure) as exc:
        ch.initialize()

    assert time.monotonic() - started < 1.0
    assert isinstance(exc.value.__cause__, RequestTimeout)
    assert ch.load_error is exc.value
    assert not ch.is_initializing
    gate.set()


def test_embed_waits_only_its_own_timeout_during_init(make_channel):
    gate = threading.Event()
    loader = FakeLoader(gate=gate)
    ch = make_channel(loader)

    started = time.monotonic()
    with pytest.raises(RequestTimeout) as exc:
        ch.embed_one("early", timeout=0.05)

    assert time.monotonic() - started < 0.5
    assert exc.value.request_type == "init"
    # the load keeps going in the background
    assert ch.is_initializing
    assert ch.load_error is None

    gate.set()
    assert wait_for(lambda: ch.is_initialized)
    assert len(ch.embed_one("later")) == DIM
    assert loader.loaded == ["fake-model"]


def test_terminate_during_init_releases_waiters(make_channel):
    gate = threading.Event()
    ch = make_channel(FakeLoader(gate=gate), join_timeout=0.01)

    errors = []

    def call():
        try:
            ch.initialize()
        except Exception as e:
            errors.append(e)

    t = threading.Thread(target=call)
    t.start()
    assert wait_for(lambda: ch.is_initializing)

    ch.terminate()
    t.join(5.0)
    gate.set()

    assert len(errors) == 1
    assert isinstance(errors[0], ChannelTerminated)
    assert not ch.is_initializing
