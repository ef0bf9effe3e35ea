# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-22
# Description: KBClusterService
# -----------------------------------------------------------------------------
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from embedding.EmbeddingRecord import EmbeddingRecord
from loader.types import Cluster
from utility.logging_utils import get_class_logger
from utility.vector_math import VectorLike, as_matrix, centroid


class KBClusterService:
    """
    k-means over item vectors, used for the graph view.

    Seeds are drawn (with replacement) from the items using `rng`, so a seeded
    Generator gives repeatable clusters.
    """

    MAX_ITERATIONS = 10
    TOLERANCE = 1e-10

    def __init__(
        self,
        *,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        logger: logging.Logger | None = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.logger = logger or get_class_logger(self.__class__)

    @staticmethod
    def choose_k(n: int, max_k: int = 10) -> int:
        if max_k < 1:
            raise ValueError(f"max_k must be >= 1, got {max_k}")
        if n == 0:
            return 0
        if n <= 2:
            return 1
        if n <= 5:
            return min(2, max_k)
        return min(max(2, math.floor(math.sqrt(n / 2))), max_k)

    def cluster(self, items: Sequence[Tuple[str, VectorLike]], max_k: int = 10) -> List[Cluster]:
        if not items:
            return []

        ids = [item_id for item_id, _ in items]
        x = as_matrix([v for _, v in items])
        n = len(ids)
        k = self.choose_k(n, max_k)

        if k == 1:
            return [Cluster(centroid=centroid(x).tolist(), member_ids=ids)]

        centroids = x[self.rng.integers(0, n, size=k)].copy()
        assignment = np.zeros(n, dtype=int)

        for iteration in range(1, self.MAX_ITERATIONS + 1):
            distances = np.linalg.norm(x[:, None, :] - centroids[None, :, :], axis=2)
            # argmin takes the first minimum: ties go to the lower cluster index
            assignment = distances.argmin(axis=1)

            updated = centroids.copy()
            for c in range(k):
                members = x[assignment == c]
                if len(members):
                    updated[c] = centroid(members)

            moved = float(np.abs(updated - centroids).max())
            centroids = updated
            if moved <= self.TOLERANCE:
                break

        clusters = [
            Cluster(
                centroid=centroids[c].tolist(),
                member_ids=[ids[i] for i in range(n) if assignment[i] == c],
            )
            for c in range(k)
        ]
        clusters = [c for c in clusters if c.member_ids]
        self.logger.info(
            "Clustered %d items into %d clusters (k=%d, %d iterations)", n, len(clusters), k, iteration
        )
        return clusters

    def cluster_sources(self, records: Sequence[EmbeddingRecord], max_k: int = 10) -> List[Cluster]:
        """One normalized centroid per source, then cluster; members are source ids."""
        by_source: Dict[str, List[np.ndarray]] = {}
        for r in records:
            by_source.setdefault(r.source_id, []).append(r.vector)
        items = [(source_id, centroid(vectors)) for source_id, vectors in by_source.items()]
        return self.cluster(items, max_k)
