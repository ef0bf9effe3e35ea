# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-28
# Updated: 2026-02-15
# Description: KBSource
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class SourceType(str, Enum):
    NOTE = "note"
    FILE = "file"


@dataclass
class KBSource:
    """A note or file known to the content provider."""
    source_id: str
    text: str
    source_type: SourceType = SourceType.NOTE
    title: Optional[str] = None
    path: Optional[Path] = None

    @property
    def display_title(self) -> str:
        return self.title or self.source_id
