# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-18
# Description: EmbeddingWorker
# -----------------------------------------------------------------------------
import logging
import queue
import threading
from typing import Any, Callable, Dict, List, Optional

import numpy as np
from pydantic import ValidationError

from embedding.ModelLoader import EmbeddingModel, ModelLoaderFn
from utility.logging_utils import get_class_logger
from worker.messages import (
    BatchComplete,
    BatchGenerateRequest,
    BatchItemResult,
    ChangeModelRequest,
    EmbeddingComplete,
    ErrorResponse,
    GenerateEmbeddingRequest,
    InitComplete,
    InitRequest,
    ModelChanged,
    Progress,
    TerminateRequest,
    parse_request,
)

PostFn = Callable[[Dict[str, Any]], None]


class EmbeddingWorker:
    """
    Worker side of the channel: a daemon thread that owns the embedding model.

    Reads request dicts from `inbox`, answers each with one response dict through
    `post`, and emits uncorrelated progress dicts while loading or batching.
    Nothing else touches the model, so it needs no locking.
    """

    # models have token limits; longer inputs are cut before encoding
    MAX_INPUT_CHARS = 8000
    # batches are encoded in small groups so progress can be reported
    BATCH_GROUP_SIZE = 5

    def __init__(
        self,
        post: PostFn,
        model_loader: ModelLoaderFn,
        *,
        model_name: str,
        logger: logging.Logger | None = None,
    ):
        self._post = post
        self._model_loader = model_loader
        self.model_name = model_name
        self.model: Optional[EmbeddingModel] = None
        self.inbox: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()
        self.logger = logger or get_class_logger(self.__class__)
        self._thread = threading.Thread(target=self.run, name="kb-embedding-worker", daemon=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        self._thread.start()

    def submit(self, payload: Dict[str, Any]) -> None:
        self.inbox.put(payload)

    def stop(self) -> None:
        # sentinel for the case where the terminate request never gets queued
        self.inbox.put(None)

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def is_current_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def run(self) -> None:
        self.logger.debug("Embedding worker thread started")
        while True:
            payload = self.inbox.get()
            if payload is None:
                break

            try:
                req = parse_request(payload)
            except ValidationError as e:
                self.logger.warning("Rejected malformed request: %s", e)
                self._post(ErrorResponse(id=payload.get("id"), error=f"Invalid request: {e}").to_wire())
                continue

            if isinstance(req, TerminateRequest):
                self.logger.info("Terminate received; embedding worker exiting")
                break

            try:
                response = self._handle(req)
            except Exception as e:
                self.logger.error("Request %s (%s) failed: %s", req.id, req.type, e)
                response = ErrorResponse(id=req.id, error=str(e) or e.__class__.__name__)
            self._post(response.to_wire())

        self.model = None
        self.logger.debug("Embedding worker thread stopped")

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------
    def _handle(self, req):
        if isinstance(req, InitRequest):
            self._load(req.data.model_name)
            return InitComplete(id=req.id, model_name=self.model_name)

        if isinstance(req, GenerateEmbeddingRequest):
            if not req.data.text:
                raise ValueError("No text provided for embedding generation")
            self._ensure_loaded()
            vec = self._encode([req.data.text])[0]
            return EmbeddingComplete(id=req.id, embedding=vec.tolist())

        if isinstance(req, BatchGenerateRequest):
            if not req.data.texts:
                raise ValueError("No texts provided for batch embedding generation")
            self._ensure_loaded()
            results = self._encode_batch(req.data.texts, req.data.item_ids or [])
            return BatchComplete(id=req.id, results=results)

        if isinstance(req, ChangeModelRequest):
            self._load(req.data.model_name)
            return ModelChanged(id=req.id, model_name=self.model_name)

        raise ValueError(f"Unknown command: {req.type}")

    def _progress(self, status: str, *, completed: int | None = None, total: int | None = None) -> None:
        self._post(Progress(status=status, completed=completed, total=total).to_wire())

    def _load(self, model_name: str) -> None:
        self._progress(f"Initializing embedding model '{model_name}'...")
        try:
            model = self._model_loader(model_name)
        except Exception as e:
            self.model = None
            raise RuntimeError(f"Failed to initialize model '{model_name}': {e}") from e

        self.model = model
        self.model_name = model_name
        self._progress("Model initialized successfully")
        self.logger.info("Embedding model '%s' loaded in worker", model_name)

    def _ensure_loaded(self) -> None:
        if self.model is None:
            self._load(self.model_name)

    def _encode(self, texts: List[str]) -> np.ndarray:
        clipped = [t[: self.MAX_INPUT_CHARS] for t in texts]
        arr = np.asarray(self.model.encode(clipped), dtype=np.float32)
        if arr.ndim != 2 or arr.shape[0] != len(clipped):
            raise ValueError(f"Model returned shape {arr.shape} for {len(clipped)} inputs")
        return arr

    def _encode_batch(self, texts: List[str], item_ids: List[Optional[str]]) -> List[BatchItemResult]:
        total = len(texts)
        results: List[BatchItemResult] = []

        for offset in range(0, total, self.BATCH_GROUP_SIZE):
            self._progress("Generating batch embeddings", completed=offset, total=total)
            group = texts[offset: offset + self.BATCH_GROUP_SIZE]
            try:
                if not all(group):
                    raise ValueError("Empty text in batch group")
                arr = self._encode(group)
                for i, vec in enumerate(arr):
                    results.append(self._item(offset + i, item_ids, embedding=vec.tolist()))
            except Exception as e:
                # isolate the failing item(s) instead of failing the whole group
                self.logger.warning("Batch group at offset %d failed (%s); retrying per item", offset, e)
                for i, text in enumerate(group):
                    results.append(self._encode_single(offset + i, text, item_ids))

        self._progress("Batch embeddings complete", completed=total, total=total)
        return results

    def _encode_single(self, index: int, text: str, item_ids: List[Optional[str]]) -> BatchItemResult:
        try:
            if not text:
                raise ValueError("Empty text")
            vec = self._encode([text])[0]
            return self._item(index, item_ids, embedding=vec.tolist())
        except Exception as e:
            return self._item(index, item_ids, error=str(e) or e.__class__.__name__)

    @staticmethod
    def _item(index: int, item_ids: List[Optional[str]], *, embedding=None, error=None) -> BatchItemResult:
        return BatchItemResult(
            index=index,
            id=item_ids[index] if index < len(item_ids) else None,
            success=error is None,
            embedding=embedding,
            error=error,
        )
