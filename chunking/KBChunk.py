# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-10
# Updated: 2026-02-15
# Description: KBChunk
# -----------------------------------------------------------------------------
from dataclasses import dataclass


@dataclass(frozen=True)
class KBChunk:
    """
    A contiguous slice of a source text, the unit of embedding.
    start/end are offsets into the original text, so text == source[start:end].
    """

    text: str
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end - self.start != len(self.text):
            raise ValueError(
                f"Chunk offsets [{self.start}, {self.end}) do not match text length {len(self.text)}"
            )

    def __len__(self) -> int:
        return len(self.text)

    def short_preview(self, n: int = 80) -> str:
        """Return a compact text preview for logging/debugging."""
        clean = " ".join(self.text.split())
        preview = (clean[:n] + "...") if len(clean) > n else clean
        return f"[{self.start}:{self.end}] {preview}"
