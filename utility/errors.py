# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-14
# Description: errors.py
# -----------------------------------------------------------------------------
"""
Error kinds raised by the semantic similarity subsystem.

Recovery policy lives with the callers:
  - RequestTimeout / WorkerError      -> fallback for that call only
  - ModelLoadFailure / ChannelTerminated -> permanent fallback mode
  - DimensionMismatch                 -> never recovered, fail fast
  - StorageUnavailable                -> propagated to the collaborator
  - CacheOverflow                     -> not raised; ResultCache evicts instead
"""


class KBError(Exception):
    """Base class for all subsystem errors."""


class ModelLoadFailure(KBError):
    """The worker could not be started or the model could not be loaded."""


class RequestTimeout(KBError):
    """A request to the worker did not complete within its time budget."""

    def __init__(self, request_type: str, timeout: float):
        super().__init__(f"Request '{request_type}' timed out after {timeout:g}s")
        self.request_type = request_type
        self.timeout = timeout


class ChannelTerminated(KBError):
    """The worker channel was terminated while the request was pending."""


class WorkerError(KBError):
    """The worker answered a request with an error response."""


class DimensionMismatch(KBError, ValueError):
    """Two vectors of different lengths were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vector dimension mismatch: {left} != {right}")
        self.left = left
        self.right = right


class StorageUnavailable(KBError):
    """The embedding store could not be reached."""


class CacheOverflow(KBError):
    """Cache grew past its ceiling. ResultCache evicts on overflow rather than raising this."""
