# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-15
# Description: ContentProvider
# -----------------------------------------------------------------------------
import logging
import threading
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from document.KBSource import KBSource, SourceType
from utility.logging_utils import get_class_logger


@runtime_checkable
class ContentProvider(Protocol):
    """Read-only view of note/file content, addressed by source id."""

    def get_text(self, source_id: str) -> str:
        ...

    def get_source_type(self, source_id: str) -> SourceType:
        ...

    def get_title(self, source_id: str) -> Optional[str]:
        ...

    def list_source_ids(self) -> List[str]:
        ...


class InMemoryContentProvider:
    """
    Dict-backed provider used by tests and by callers that push content in directly.
    Unknown ids raise KeyError from get_text/get_source_type.
    """

    def __init__(
        self,
        sources: Iterable[KBSource] = (),
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sources: Dict[str, KBSource] = {}
        self._lock = threading.Lock()
        self.logger = logger or get_class_logger(self.__class__)
        for src in sources:
            self.put(src)

    def put(self, source: KBSource) -> None:
        with self._lock:
            self._sources[source.source_id] = source

    def remove(self, source_id: str) -> bool:
        with self._lock:
            return self._sources.pop(source_id, None) is not None

    def _get(self, source_id: str) -> KBSource:
        with self._lock:
            try:
                return self._sources[source_id]
            except KeyError:
                raise KeyError(f"Source '{source_id}' not found") from None

    def get_text(self, source_id: str) -> str:
        return self._get(source_id).text

    def get_source_type(self, source_id: str) -> SourceType:
        return self._get(source_id).source_type

    def get_title(self, source_id: str) -> Optional[str]:
        with self._lock:
            src = self._sources.get(source_id)
        return src.display_title if src else None

    def list_source_ids(self) -> List[str]:
        with self._lock:
            return list(self._sources.keys())
