# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-19
# Description: fallback.py
# -----------------------------------------------------------------------------
import logging
from typing import Callable, Optional, Tuple, TypeVar

from utility.errors import ChannelTerminated, ModelLoadFailure, RequestTimeout, WorkerError
from utility.logging_utils import get_logger

T = TypeVar("T")

# failures of the model path that a deterministic substitute can cover;
# DimensionMismatch and programming errors are not in this set
RECOVERABLE = (RequestTimeout, WorkerError, ModelLoadFailure, ChannelTerminated)

_logger = get_logger(__name__)


def with_fallback(
    call: Callable[[float], T],
    fallback_fn: Callable[[], T],
    timeout: float,
    logger: Optional[logging.Logger] = None,
    on_failure: Optional[Callable[[Exception], None]] = None,
) -> Tuple[T, bool]:
    """
    Run `call(timeout)`; on a recoverable model-path failure return `fallback_fn()` instead.

    Returns (value, used_fallback). `on_failure` sees the error before the
    fallback runs. Errors outside RECOVERABLE propagate.
    """
    log = logger or _logger
    try:
        return call(timeout), False
    except RECOVERABLE as e:
        log.warning("Model call failed (%s: %s); using fallback embedding", e.__class__.__name__, e)
        if on_failure is not None:
            on_failure(e)
        return fallback_fn(), True
