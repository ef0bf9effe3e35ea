# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-12
# Updated: 2026-02-26
# Description: conftest.py
# -----------------------------------------------------------------------------

import sys
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from embedding.FallbackEmbedder import FallbackEmbedder  # noqa: E402

DIM = 8


def wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakeModel:
    """
    Stand-in for a sentence-transformers model.

    Known texts map to fixed vectors; anything else gets a deterministic
    pseudo-random vector. Texts in `fail_on` make encode() raise.
    """

    def __init__(
        self,
        name: str = "fake-model",
        *,
        dimension: int = DIM,
        vectors: Optional[Dict[str, Sequence[float]]] = None,
        delay: float = 0.0,
        fail_on: Sequence[str] = (),
    ):
        self.name = name
        self.dimension = dimension
        self.vectors = {k: np.asarray(v, dtype=np.float32) for k, v in (vectors or {}).items()}
        self.delay = delay
        self.fail_on = set(fail_on)
        self.calls: List[List[str]] = []
        self._hash = FallbackEmbedder(dimension)

    def encode(self, texts: List[str]) -> np.ndarray:
        self.calls.append(list(texts))
        if self.delay:
            time.sleep(self.delay)
        bad = [t for t in texts if t in self.fail_on]
        if bad:
            raise ValueError(f"cannot encode {bad[0]!r}")
        # reversed so real vectors differ from FallbackEmbedder output
        return np.vstack([self.vectors.get(t, self._hash.embed(t)[::-1]) for t in texts])


class FakeLoader:
    """Model loader that counts calls and can block or fail."""

    def __init__(self, model: Optional[FakeModel] = None, *, fail: bool = False, gate: Optional[threading.Event] = None):
        self.model = model or FakeModel()
        self.fail = fail
        self.gate = gate
        self.loaded: List[str] = []

    def __call__(self, model_name: str) -> FakeModel:
        if self.gate is not None:
            self.gate.wait(5.0)
        self.loaded.append(model_name)
        if self.fail:
            raise OSError(f"model '{model_name}' not found")
        self.model.name = model_name
        return self.model


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def fake_loader(fake_model: FakeModel) -> FakeLoader:
    return FakeLoader(fake_model)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
