# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-16
# Description: FallbackEmbedder
# -----------------------------------------------------------------------------
from typing import List, Sequence

import numpy as np

from utility.vector_math import normalize


def _rolling_hash(text: str) -> int:
    """31-multiplier rolling hash over the characters, wrapped to a signed 32-bit int."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


class FallbackEmbedder:
    """
    Deterministic text -> vector function used when the real model is unavailable.

    The text hash seeds a sine-based pseudo-random sequence; D values in [-1, 1]
    are drawn from it and normalized to unit length. Identical text always gives
    a bit-identical vector.

    These vectors are NOT semantic. They keep search and similarity available,
    and every record built from them carries MODEL_TAG so callers can tell them apart.
    """

    MODEL_TAG = "fallback-v1"

    def __init__(self, dimension: int = 384):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self.dimension = dimension
        self.model = self.MODEL_TAG

    def embed(self, text: str) -> np.ndarray:
        seed = _rolling_hash(text or "")
        x = np.sin(np.arange(self.dimension, dtype=np.float64) + seed) * 10000.0
        values = (x - np.floor(x)) * 2.0 - 1.0
        return normalize(values).astype(np.float32)

    def embed_many(self, texts: Sequence[str]) -> List[np.ndarray]:
        return [self.embed(t) for t in texts]

    def __repr__(self) -> str:
        return f"FallbackEmbedder(dimension={self.dimension}, model={self.MODEL_TAG!r})"
