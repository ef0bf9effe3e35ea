# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-11
# Updated: 2026-02-15
# Description: KBChunker
# -----------------------------------------------------------------------------
import logging
import math
import re
from typing import Iterator, List, Optional, Tuple

from chunking.KBChunk import KBChunk
from utility.logging_utils import get_class_logger

Span = Tuple[int, int]

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_WORD = re.compile(r"\S+")


def _split_spans(text: str, pattern: re.Pattern, start: int, end: int) -> Iterator[Span]:
    """Yield the spans between matches of `pattern` inside text[start:end], trimmed of whitespace."""
    cursor = start
    for m in pattern.finditer(text, start, end):
        yield from _trimmed(text, cursor, m.start())
        cursor = m.end()
    yield from _trimmed(text, cursor, end)


def _trimmed(text: str, start: int, end: int) -> Iterator[Span]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start < end:
        yield start, end


class KBChunker:
    """
    Splits note/file text into overlapping KBChunk objects.

    Paragraphs (blank-line separated) are kept whole when they fit in max_len.
    Longer paragraphs are packed sentence by sentence; each new chunk is seeded
    with a whole-word tail of roughly overlap_len characters from the previous one.
    A sentence longer than max_len becomes its own oversized chunk.
    """

    def __init__(
        self,
        *,
        max_len: int = 512,
        overlap_len: int = 50,
        logger: logging.Logger | None = None,
    ):
        self.max_len = max_len
        self.overlap_len = overlap_len
        self.logger = logger or get_class_logger(self.__class__)

        # guard against bad config that can cause infinite loops
        if self.max_len <= 0:
            raise ValueError(f"max_len must be positive, got {self.max_len}")
        if self.overlap_len < 0 or self.overlap_len >= self.max_len:
            raise ValueError(
                f"overlap_len ({self.overlap_len}) must be >= 0 and < max_len ({self.max_len})"
            )

    def chunk(
        self,
        text: str,
        max_len: Optional[int] = None,
        overlap_len: Optional[int] = None,
    ) -> List[KBChunk]:
        max_len = self.max_len if max_len is None else max_len
        overlap_len = self.overlap_len if overlap_len is None else overlap_len

        if max_len <= 0 or overlap_len < 0 or overlap_len >= max_len:
            raise ValueError(f"Invalid chunk sizes max_len={max_len} overlap_len={overlap_len}")

        if not text or not text.strip():
            return []

        spans: List[Span] = []
        for p_start, p_end in _split_spans(text, _PARAGRAPH_BREAK, 0, len(text)):
            if p_end - p_start <= max_len:
                spans.append((p_start, p_end))
            else:
                spans.extend(self._pack_sentences(text, p_start, p_end, max_len, overlap_len))

        chunks = [KBChunk(text=text[s:e], start=s, end=e) for s, e in spans]

        if chunks:
            avg_len = sum(len(c) for c in chunks) / len(chunks)
            self.logger.debug(
                "Chunking summary: chars=%d chunks=%d avg_len=%.1f max_len=%d overlap=%d",
                len(text),
                len(chunks),
                avg_len,
                max_len,
                overlap_len,
            )
        return chunks

    def _pack_sentences(
        self, text: str, p_start: int, p_end: int, max_len: int, overlap_len: int
    ) -> List[Span]:
        spans: List[Span] = []
        current: Optional[Span] = None

        for s_start, s_end in _split_spans(text, _SENTENCE_BREAK, p_start, p_end):
            if current is None:
                current = (s_start, s_end)
                continue

            cur_start, cur_end = current
            if s_end - cur_start <= max_len:
                current = (cur_start, s_end)
                continue

            # close the chunk and seed the next one with a word-aligned tail
            spans.append(current)
            seed = self._overlap_start(text, cur_start, cur_end, overlap_len)
            if seed is None or s_end - seed > max_len:
                current = (s_start, s_end)
            else:
                current = (seed, s_end)

        if current is not None:
            spans.append(current)
        return spans

    @staticmethod
    def _overlap_start(text: str, start: int, end: int, overlap_len: int) -> Optional[int]:
        """Offset where the overlap tail of text[start:end] begins, or None for no overlap."""
        if overlap_len <= 0:
            return None

        words = [m.start() for m in _WORD.finditer(text, start, end)]
        if len(words) < 2:
            return None

        avg_word_len = (end - start) / len(words)
        n_words = min(math.ceil(overlap_len / avg_word_len), len(words) - 1)
        if n_words <= 0:
            return None
        return words[-n_words]
