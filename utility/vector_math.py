# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-14
# Description: vector_math.py
# -----------------------------------------------------------------------------
"""
Stateless vector helpers used by similarity search and clustering.

All functions accept lists or numpy arrays. Comparing vectors of different
lengths raises DimensionMismatch rather than truncating.
"""
from typing import Sequence, Union

import numpy as np

from utility.errors import DimensionMismatch

VectorLike = Union[Sequence[float], np.ndarray]


def _as_vector(v: VectorLike) -> np.ndarray:
    arr = np.asarray(v, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {arr.shape}")
    return arr


def _check_dims(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape[-1] != b.shape[-1]:
        raise DimensionMismatch(a.shape[-1], b.shape[-1])


def as_matrix(vectors: Sequence[VectorLike]) -> np.ndarray:
    """Stack vectors into a (n, D) float64 matrix, validating that every row has the same D."""
    rows = [_as_vector(v) for v in vectors]
    if not rows:
        return np.empty((0, 0), dtype=np.float64)
    dim = rows[0].shape[0]
    for row in rows[1:]:
        if row.shape[0] != dim:
            raise DimensionMismatch(dim, row.shape[0])
    return np.vstack(rows)


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine of the angle between a and b. Returns 0.0 if either has zero magnitude."""
    va = _as_vector(a)
    vb = _as_vector(b)
    _check_dims(va, vb)

    norm_product = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm_product == 0.0:
        return 0.0

    sim = float(np.dot(va, vb) / norm_product)
    # rounding can push identical vectors just past 1.0
    return max(-1.0, min(1.0, sim))


def cosine_similarity_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Pairwise cosine similarity between the rows of a (n, D) and b (m, D).
    Rows with zero magnitude score 0.0 against everything.
    """
    ma = np.atleast_2d(np.asarray(a, dtype=np.float64))
    mb = np.atleast_2d(np.asarray(b, dtype=np.float64))
    if ma.size == 0 or mb.size == 0:
        return np.zeros((ma.shape[0] if ma.size else 0, mb.shape[0] if mb.size else 0))
    _check_dims(ma, mb)

    na = np.linalg.norm(ma, axis=1)
    nb = np.linalg.norm(mb, axis=1)
    denom = np.outer(na, nb)
    dots = ma @ mb.T

    out = np.zeros_like(dots)
    np.divide(dots, denom, out=out, where=denom != 0.0)
    return np.clip(out, -1.0, 1.0)


def normalize(v: VectorLike) -> np.ndarray:
    """Scale v to unit length. The zero vector maps to itself."""
    arr = _as_vector(v)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return arr.copy()
    return arr / norm


def centroid(vectors: Sequence[VectorLike]) -> np.ndarray:
    """Normalized mean of the given vectors."""
    if len(vectors) == 0:
        raise ValueError("centroid() requires at least one vector")
    matrix = as_matrix(vectors)
    return normalize(matrix.mean(axis=0))


def euclidean_distance(a: VectorLike, b: VectorLike) -> float:
    va = _as_vector(a)
    vb = _as_vector(b)
    _check_dims(va, vb)
    return float(np.linalg.norm(va - vb))
