# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-17
# Description: SentenceTransformerModel
# -----------------------------------------------------------------------------
import logging
import os
from typing import List

import numpy as np

from utility.logging_utils import get_class_logger


class SentenceTransformerModel:
    """
    Local sentence-transformers model (mean pooling, normalized output).
    The import is deferred so the package loads without torch installed.
    """

    def __init__(self, model_name: str, *, device: str | None = None, logger: logging.Logger | None = None):
        self.name = model_name
        self.logger = logger or get_class_logger(self.__class__)

        # Disable tokenizer fork warnings in the worker thread
        os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")

        from sentence_transformers import SentenceTransformer

        self.logger.info("Loading sentence-transformers model '%s' (device=%s)", model_name, device or "auto")
        self._model = SentenceTransformer(model_name, device=device)

        dim_fn = getattr(self._model, "get_sentence_embedding_dimension", None)
        self.dimension = int(dim_fn()) if callable(dim_fn) else None
        self.logger.info("Model '%s' ready (dim=%s)", model_name, self.dimension)

    def encode(self, texts: List[str]) -> np.ndarray:
        arr = self._model.encode(
            texts,
            normalize_embeddings=True,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        return np.asarray(arr, dtype=np.float32)
