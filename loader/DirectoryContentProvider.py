# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-08
# Updated: 2026-02-16
# Description: DirectoryContentProvider
# -----------------------------------------------------------------------------
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

from document.KBSource import SourceType
from utility.logging_utils import get_class_logger


class DirectoryContentProvider:
    """
    Serves notes and files from a local directory tree.

    Provides:
      - list_source_ids(): relative POSIX paths of every readable text file
      - get_text(): file contents decoded as UTF-8

    Markdown files are treated as notes, everything else as files.
    Logs timing and error information like the rest of the loaders.
    """

    NOTE_SUFFIXES = (".md", ".markdown")
    DEFAULT_SUFFIXES = (".md", ".markdown", ".txt", ".rst")

    def __init__(
        self,
        root: Path | str,
        *,
        suffixes: Sequence[str] = DEFAULT_SUFFIXES,
        logger: logging.Logger | None = None,
    ):
        self.root = Path(root).expanduser().resolve()
        self.suffixes = tuple(s.lower() for s in suffixes)
        self.logger = logger or get_class_logger(self.__class__)

        if not self.root.is_dir():
            raise NotADirectoryError(f"Content directory not found: {self.root}")

        self.logger.info("Content provider rooted at '%s' (suffixes=%s)", self.root, self.suffixes)

    def _path_for(self, source_id: str) -> Path:
        path = (self.root / source_id).resolve()
        # source ids must stay inside the root
        if self.root not in path.parents or not path.is_file():
            raise KeyError(f"Source '{source_id}' not found under {self.root}")
        return path

    def list_source_ids(self) -> List[str]:
        start_time = time.time()
        ids = sorted(
            p.relative_to(self.root).as_posix()
            for p in self.root.rglob("*")
            if p.is_file() and p.suffix.lower() in self.suffixes
        )
        elapsed = (time.time() - start_time) * 1000.0
        self.logger.info("Found %d source(s) under '%s' (%.1f ms)", len(ids), self.root, elapsed)
        return ids

    def get_text(self, source_id: str) -> str:
        path = self._path_for(source_id)
        start_time = time.time()
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            self.logger.error("Failed to read '%s': %s", path, e)
            raise
        elapsed = (time.time() - start_time) * 1000.0
        self.logger.debug("Loaded '%s' (%d chars, %.1f ms)", source_id, len(text), elapsed)
        return text

    def get_source_type(self, source_id: str) -> SourceType:
        path = self._path_for(source_id)
        return SourceType.NOTE if path.suffix.lower() in self.NOTE_SUFFIXES else SourceType.FILE

    def get_title(self, source_id: str) -> Optional[str]:
        try:
            path = self._path_for(source_id)
        except KeyError:
            return None
        return path.stem if path.suffix.lower() in self.NOTE_SUFFIXES else path.name

