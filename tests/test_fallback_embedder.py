# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-16
# Description: test_fallback_embedder.py
# -----------------------------------------------------------------------------
import numpy as np
import pytest

from embedding.FallbackEmbedder import FallbackEmbedder, _rolling_hash


def test_same_text_gives_bit_identical_vectors():
    emb = FallbackEmbedder(384)
    a = emb.embed("knee brace fitting notes")
    b = FallbackEmbedder(384).embed("knee brace fitting notes")
    assert a.dtype == np.float32
    assert a.shape == (384,)
    assert np.array_equal(a, b)


def test_vectors_are_unit_length_and_text_dependent():
    emb = FallbackEmbedder(64)
    a = emb.embed("alpha")
    b = emb.embed("beta")
    assert np.linalg.norm(a) == pytest.approx(1.0, abs=1e-5)
    assert not np.array_equal(a, b)


def test_rolling_hash_wraps_to_signed_32_bit():
    assert _rolling_hash("") == 0
    assert _rolling_hash("a") == 97
    assert _rolling_hash("ab") == 97 * 31 + 98
    h = _rolling_hash("x" * 200)
    assert -(2 ** 31) <= h < 2 ** 31


def test_embed_many_and_bad_dimension():
    emb = FallbackEmbedder(16)
    out = emb.embed_many(["a", "b", "a"])
    assert len(out) == 3
    assert np.array_equal(out[0], out[2])

    with pytest.raises(ValueError):
        FallbackEmbedder(0)
