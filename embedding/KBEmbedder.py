# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-19
# Description: KBEmbedder
# -----------------------------------------------------------------------------
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from embedding.FallbackEmbedder import FallbackEmbedder
from utility.errors import ChannelTerminated, ModelLoadFailure, RequestTimeout, WorkerError
from utility.logging_utils import get_class_logger
from worker.ModelWorkerChannel import ModelWorkerChannel
from worker.fallback import with_fallback


@dataclass(frozen=True)
class EmbeddedVector:
    vector: np.ndarray
    model: str
    used_fallback: bool


class KBEmbedder:
    """
    Text -> vector for the services.

    Asks the worker channel first and substitutes the FallbackEmbedder when the
    call times out or fails. A load failure or a terminated channel switches to
    permanent fallback mode: the channel is not asked again until change_model()
    succeeds.
    """

    def __init__(
        self,
        channel: ModelWorkerChannel,
        fallback: FallbackEmbedder,
        *,
        embed_timeout: Optional[float] = None,
        logger: logging.Logger | None = None,
    ):
        self.channel = channel
        self.fallback = fallback
        self.embed_timeout = channel.embed_timeout if embed_timeout is None else embed_timeout
        self.logger = logger or get_class_logger(self.__class__)

        self.fallback_mode = False
        self.fallback_reason: Optional[str] = None
        self._last_used_fallback = False

    @property
    def model_name(self) -> str:
        return FallbackEmbedder.MODEL_TAG if self.fallback_mode else self.channel.model_name

    def is_using_fallback(self) -> bool:
        return self.fallback_mode or self._last_used_fallback

    def _enter_fallback_mode(self, err: Exception) -> None:
        if self.fallback_mode:
            return
        self.fallback_mode = True
        self.fallback_reason = str(err)
        self.logger.warning(
            "Embedding model unavailable (%s); all embeddings will use '%s' until the model is changed",
            err,
            FallbackEmbedder.MODEL_TAG,
        )

    def _on_failure(self, err: Exception) -> None:
        if isinstance(err, (ModelLoadFailure, ChannelTerminated)):
            self._enter_fallback_mode(err)

    def initialize(self, model_name: Optional[str] = None, on_progress: Optional[Callable] = None) -> bool:
        try:
            ok = self.channel.initialize(model_name, on_progress)
        except ModelLoadFailure as e:
            self._enter_fallback_mode(e)
            return False
        except RequestTimeout as e:
            self.logger.warning("Embedding model initialization still pending: %s", e)
            return False
        except ChannelTerminated as e:
            self.logger.warning("Embedding model initialization stopped: %s", e)
            return False
        self._last_used_fallback = False
        return ok

    def embed_one(self, text: str, timeout: Optional[float] = None) -> EmbeddedVector:
        if self.fallback_mode:
            self._last_used_fallback = True
            return EmbeddedVector(self.fallback.embed(text), FallbackEmbedder.MODEL_TAG, True)

        model = self.channel.model_name
        raw, used = with_fallback(
            lambda t: self.channel.embed_one(text, timeout=t),
            lambda: self.fallback.embed(text),
            self.embed_timeout if timeout is None else timeout,
            logger=self.logger,
            on_failure=self._on_failure,
        )
        self._last_used_fallback = used
        if used:
            return EmbeddedVector(raw, FallbackEmbedder.MODEL_TAG, True)
        return EmbeddedVector(np.asarray(raw, dtype=np.float32), model, False)

    def embed_batch(
        self,
        texts: Sequence[str],
        ids: Optional[Sequence[Optional[str]]] = None,
        timeout: Optional[float] = None,
    ) -> List[EmbeddedVector]:
        """
        One vector per text, in input order.
        A failed or timed-out round-trip falls back for the whole batch;
        an item the model rejects falls back on its own.
        """
        texts = list(texts)
        if not texts:
            return []
        if self.fallback_mode:
            self._last_used_fallback = True
            return [EmbeddedVector(v, FallbackEmbedder.MODEL_TAG, True) for v in self.fallback.embed_many(texts)]

        model = self.channel.model_name
        result, used = with_fallback(
            lambda t: self.channel.embed_batch(texts, ids, timeout=t),
            lambda: self.fallback.embed_many(texts),
            self.channel.batch_timeout if timeout is None else timeout,
            logger=self.logger,
            on_failure=self._on_failure,
        )
        if used:
            self._last_used_fallback = True
            return [EmbeddedVector(v, FallbackEmbedder.MODEL_TAG, True) for v in result]

        vectors: List[Optional[EmbeddedVector]] = [None] * len(texts)
        for outcome in result:
            if outcome.success and outcome.embedding is not None:
                vectors[outcome.index] = EmbeddedVector(
                    np.asarray(outcome.embedding, dtype=np.float32), outcome.model or model, False
                )
            else:
                self.logger.debug("Batch item %d failed: %s", outcome.index, outcome.error)

        failed = [i for i, v in enumerate(vectors) if v is None]
        for i in failed:
            vectors[i] = EmbeddedVector(self.fallback.embed(texts[i]), FallbackEmbedder.MODEL_TAG, True)
        if failed:
            self.logger.warning("%d of %d batch item(s) used fallback embeddings", len(failed), len(texts))

        self._last_used_fallback = bool(failed)
        return vectors

    def change_model(self, model_name: str) -> bool:
        try:
            self.channel.change_model(model_name)
        except (ModelLoadFailure, RequestTimeout, WorkerError, ChannelTerminated) as e:
            self.logger.error("Could not switch embedding model to '%s': %s", model_name, e)
            return False

        if self.fallback_mode:
            self.logger.info("Embedding model '%s' loaded; leaving fallback mode", model_name)
        self.fallback_mode = False
        self.fallback_reason = None
        self._last_used_fallback = False
        return True

    def shutdown(self) -> None:
        self.channel.terminate()
