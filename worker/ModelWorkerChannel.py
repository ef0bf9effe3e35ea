# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-18
# Updated: 2026-02-26
# Description: ModelWorkerChannel
# -----------------------------------------------------------------------------
import logging
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeout
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from embedding.ModelLoader import ModelLoaderFn, load_model
from loader.types import EmbeddingOutcome
from utility.errors import ChannelTerminated, ModelLoadFailure, RequestTimeout, WorkerError
from utility.logging_utils import get_class_logger
from worker.EmbeddingWorker import EmbeddingWorker
from worker.messages import (
    BatchData,
    BatchGenerateRequest,
    ChangeModelRequest,
    ErrorResponse,
    GenerateEmbeddingRequest,
    InitData,
    InitRequest,
    Progress,
    TerminateRequest,
    TextData,
    new_request_id,
    parse_response,
)

ProgressObserver = Callable[[Progress], None]


class ModelWorkerChannel:
    """
    Caller side of the embedding worker.

    Owns one EmbeddingWorker thread and turns its message protocol into blocking
    calls with per-request timeouts:
      - every request gets a fresh correlation id and a Future in `_pending`
      - the worker's response resolves or rejects that Future exactly once
      - progress messages bypass `_pending` and go to the observer
      - terminate() rejects every Future still pending

    Initialization is latched: all callers share one init Future. The load runs
    in the background and a deadline timer fails it after init_timeout, so an
    embed call never waits longer than its own timeout for the model.
    A failed load is remembered and re-raised instead of retried.
    """

    def __init__(
        self,
        model_loader: ModelLoaderFn = load_model,
        *,
        model_name: str = "all-MiniLM-L6-v2",
        init_timeout: float = 60.0,
        embed_timeout: float = 10.0,
        batch_timeout: float = 30.0,
        join_timeout: float = 1.0,
        on_progress: Optional[ProgressObserver] = None,
        logger: logging.Logger | None = None,
    ):
        self._model_loader = model_loader
        self.model_name = model_name
        self.init_timeout = init_timeout
        self.embed_timeout = embed_timeout
        self.batch_timeout = batch_timeout
        self.join_timeout = join_timeout
        self._on_progress = on_progress
        self.logger = logger or get_class_logger(self.__class__)

        self._worker: Optional[EmbeddingWorker] = None
        self._pending: Dict[str, Future] = {}
        self._pending_lock = threading.Lock()
        self._init_lock = threading.RLock()
        self._init_future: Optional[Future] = None
        self.load_error: Optional[ModelLoadFailure] = None

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    @property
    def is_initialized(self) -> bool:
        fut = self._init_future
        worker = self._worker
        return (
            fut is not None
            and fut.done()
            and fut.exception() is None
            and worker is not None
            and worker.is_alive()
        )

    @property
    def is_initializing(self) -> bool:
        fut = self._init_future
        return fut is not None and not fut.done()

    @property
    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def initialize(self, model_name: Optional[str] = None, on_progress: Optional[ProgressObserver] = None) -> bool:
        """
        Start the worker and load the model. Returns True once the model is ready.
        Raises ModelLoadFailure if the worker cannot start, the model cannot load,
        or loading takes longer than init_timeout.
        """
        if on_progress is not None:
            self._on_progress = on_progress

        fut = self._begin_init(model_name)
        # the deadline timer settles the future; the extra second covers a slow stop
        return self._await_init(fut, self.init_timeout + self.join_timeout)

    def _begin_init(self, model_name: Optional[str] = None) -> Future:
        """Return the shared init Future, dispatching the init request if none exists yet."""
        with self._init_lock:
            if self._init_future is not None:
                return self._init_future
            fut: Future = Future()
            self._init_future = fut
            name = model_name or self.model_name

        self.logger.info("Initializing embedding worker with model '%s'", name)
        request = InitRequest(id=new_request_id("init"), data=InitData(model_name=name))
        try:
            self._start_worker(name)
            reply = self._dispatch(request)
        except Exception as e:
            self._settle_init(fut, name, e)
            return fut

        deadline = threading.Timer(self.init_timeout, self._expire_init, args=(fut, request.id, name))
        deadline.daemon = True
        deadline.start()
        fut.add_done_callback(lambda _: deadline.cancel())
        reply.add_done_callback(lambda r: self._settle_init(fut, name, r.exception()))
        return fut

    def _expire_init(self, fut: Future, request_id: str, name: str) -> None:
        if fut.done():
            return
        self._forget(request_id)
        self._settle_init(fut, name, RequestTimeout("init", self.init_timeout))

    def _settle_init(self, fut: Future, name: str, error: Optional[BaseException]) -> None:
        with self._init_lock:
            if fut.done():
                return

            if error is None:
                self.model_name = name
                fut.set_result(True)
                self.logger.info("Embedding worker ready (model='%s')", name)
                return

            if isinstance(error, ModelLoadFailure):
                failure = error
            else:
                failure = ModelLoadFailure(f"Embedding model '{name}' could not be loaded: {error}")
                failure.__cause__ = error
            self.load_error = failure
            fut.set_exception(failure)

        self._stop_worker()
        self.logger.error("Embedding worker initialization failed: %s", failure)

    def _await_init(self, fut: Future, timeout: float) -> bool:
        try:
            return fut.result(timeout=timeout)
        except FutureTimeout:
            raise RequestTimeout("init", timeout) from None

    def _start_worker(self, model_name: str) -> None:
        worker = EmbeddingWorker(
            post=self._handle_message,
            model_loader=self._model_loader,
            model_name=model_name,
        )
        try:
            worker.start()
        except RuntimeError as e:
            raise ModelLoadFailure(f"Could not start embedding worker thread: {e}") from e
        self._worker = worker

    def _stop_worker(self) -> None:
        worker, self._worker = self._worker, None
        if worker is None:
            return
        worker.submit(TerminateRequest(id=new_request_id("terminate")).to_wire())
        worker.stop()
        if worker.is_current_thread():
            # settling from a worker callback: the thread exits after this message
            return
        worker.join(self.join_timeout)
        if worker.is_alive():
            # busy in a model call; it is a daemon thread and exits after the call returns
            self.logger.warning("Embedding worker still busy after %.1fs; detaching", self.join_timeout)

    def terminate(self) -> None:
        """Stop the worker and reject every pending request with ChannelTerminated."""
        with self._init_lock:
            init_fut, self._init_future = self._init_future, None
            if init_fut is not None and not init_fut.done():
                init_fut.set_exception(ChannelTerminated("Worker terminated during initialization"))

        had_worker = self._worker is not None
        self._stop_worker()

        with self._pending_lock:
            pending = list(self._pending.items())
            self._pending.clear()

        for request_id, fut in pending:
            if not fut.done():
                fut.set_exception(ChannelTerminated(f"Worker terminated before request {request_id} completed"))

        if had_worker or pending:
            self.logger.info("Embedding worker terminated (%d pending request(s) rejected)", len(pending))

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def _ensure_ready(self, timeout: float) -> float:
        """
        Wait at most `timeout` for the model, starting the load if nothing has.
        Returns what is left of `timeout` for the request itself.
        """
        if self.load_error is not None:
            raise self.load_error
        if self.is_initialized:
            return timeout

        started = time.monotonic()
        self._await_init(self._begin_init(), timeout)
        return max(timeout - (time.monotonic() - started), 0.0)

    def embed_one(self, text: str, timeout: Optional[float] = None) -> List[float]:
        timeout = self.embed_timeout if timeout is None else timeout
        remaining = self._ensure_ready(timeout)
        resp = self._request(
            GenerateEmbeddingRequest(id=new_request_id("embed"), data=TextData(text=text)),
            remaining,
        )
        return resp.embedding

    def embed_batch(
        self,
        texts: Sequence[str],
        ids: Optional[Sequence[Optional[str]]] = None,
        timeout: Optional[float] = None,
    ) -> List[EmbeddingOutcome]:
        """One round-trip for all texts; each outcome succeeds or fails on its own."""
        if not texts:
            return []
        timeout = self.batch_timeout if timeout is None else timeout
        remaining = self._ensure_ready(timeout)
        resp = self._request(
            BatchGenerateRequest(
                id=new_request_id("batch"),
                data=BatchData(texts=list(texts), item_ids=list(ids) if ids is not None else None),
            ),
            remaining,
        )
        return [
            EmbeddingOutcome(
                index=r.index,
                id=r.id,
                success=r.success,
                embedding=r.embedding,
                error=r.error,
                model=self.model_name if r.success else None,
            )
            for r in sorted(resp.results, key=lambda r: r.index)
        ]

    def change_model(self, model_name: str) -> bool:
        if model_name == self.model_name and self.load_error is None:
            return True

        if not self.is_initialized:
            # nothing loaded yet (or the last load failed): start over with the new model
            self.terminate()
            self.load_error = None
            self.model_name = model_name
            return self.initialize(model_name)

        self.logger.info("Changing embedding model '%s' -> '%s'", self.model_name, model_name)
        try:
            self._request(
                ChangeModelRequest(id=new_request_id("change-model"), data=InitData(model_name=model_name)),
                self.init_timeout,
            )
        except WorkerError as e:
            raise ModelLoadFailure(f"Failed to change embedding model to '{model_name}': {e}") from e

        self.model_name = model_name
        return True

    def _dispatch(self, msg) -> Future:
        worker = self._worker
        if worker is None or not worker.is_alive():
            raise ChannelTerminated("Embedding worker is not running")

        fut: Future = Future()
        with self._pending_lock:
            self._pending[msg.id] = fut

        self.logger.debug("-> %s id=%s", msg.type, msg.id)
        worker.submit(msg.to_wire())
        return fut

    def _forget(self, request_id: str) -> None:
        with self._pending_lock:
            self._pending.pop(request_id, None)

    def _request(self, msg, timeout: float) -> Any:
        fut = self._dispatch(msg)
        try:
            return fut.result(timeout=timeout)
        except FutureTimeout:
            self._forget(msg.id)
            self.logger.warning("Request %s (%s) timed out after %gs", msg.id, msg.type, timeout)
            raise RequestTimeout(msg.type, timeout) from None

    # ------------------------------------------------------------------
    # Responses (called on the worker thread)
    # ------------------------------------------------------------------
    def _handle_message(self, payload: Dict[str, Any]) -> None:
        try:
            msg = parse_response(payload)
        except ValidationError as e:
            self.logger.warning("Dropping malformed worker message: %s", e)
            return

        if isinstance(msg, Progress):
            if self._on_progress is not None:
                try:
                    self._on_progress(msg)
                except Exception as e:
                    self.logger.warning("Progress observer raised: %s", e)
            return

        if msg.id is None:
            self.logger.warning("Uncorrelated worker message: %s", payload)
            return

        with self._pending_lock:
            fut = self._pending.pop(msg.id, None)

        if fut is None:
            # late answer to a request that already timed out or was rejected
            self.logger.warning("Received response for unknown request: %s", msg.id)
            return

        self.logger.debug("<- %s id=%s", msg.type, msg.id)
        if isinstance(msg, ErrorResponse):
            fut.set_exception(WorkerError(msg.error))
        else:
            fut.set_result(msg)
