"""Chunking utilities for breaking text into embedding-friendly units."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from .models import Chunk

_SENTENCE_END_RE = re.compile(r"[.!?](?=\s)")
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChunkingConfig:
    chunk_chars: int = 1000
    overlap_chars: int = 200
    respect_boundaries: bool = False

    def __post_init__(self) -> None:
        if self.chunk_chars <= 0:
            raise ValueError("chunk_chars must be a positive integer")
        if self.overlap_chars < 0:
            raise ValueError("overlap_chars must be a non-negative integer")
        if self.overlap_chars >= self.chunk_chars:
            raise ValueError("overlap_chars must be smaller than chunk_chars")


class TextChunker:
    """Split text into chunks that overlap their predecessor by a fixed amount.

    Every chunk after the first starts exactly ``overlap_chars`` characters
    before the end of the previous one, and the last chunk always ends at the
    end of the text. Dropping the overlap prefix of every chunk but the first
    and concatenating therefore reproduces the input.

    With ``respect_boundaries`` enabled a chunk may end early on a sentence
    end or a word break, but only past ``start + overlap_chars`` so that the
    next chunk still makes progress. Input is expected to be normalised, so
    line and paragraph breaks have already been folded into single spaces.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    def split(self, text: str) -> List[Chunk]:
        chunks = [
            Chunk(text=text[start:end], ordinal=ordinal, start=start, end=end)
            for ordinal, (start, end) in enumerate(self._spans(text))
        ]
        LOGGER.debug("Split %s characters into %s chunks", len(text), len(chunks))
        return chunks

    def _spans(self, text: str) -> Iterator[Tuple[int, int]]:
        text_length = len(text)
        if not text_length:
            return
        chunk_chars = self.config.chunk_chars
        overlap_chars = self.config.overlap_chars
        start = 0
        while True:
            end = min(start + chunk_chars, text_length)
            if end < text_length and self.config.respect_boundaries:
                end = self._find_semantic_break(text, start, end)
            yield start, end
            if end >= text_length:
                return
            start = end - overlap_chars

    def _find_semantic_break(self, text: str, start: int, tentative_end: int) -> int:
        floor = self.config.overlap_chars + 1
        segment = text[start:tentative_end]
        sentence_break = self._find_sentence_break(segment)
        if sentence_break is not None and sentence_break >= max(floor, self.config.chunk_chars // 4):
            return start + sentence_break
        word_break = segment.rfind(" ")
        if word_break != -1 and word_break + 1 >= max(floor, self.config.chunk_chars // 4):
            return start + word_break + 1
        return tentative_end

    @staticmethod
    def _find_sentence_break(segment: str) -> int | None:
        matches = list(_SENTENCE_END_RE.finditer(segment))
        if not matches:
            return None
        # Include the whitespace following the terminator.
        return matches[-1].end() + 1


def chunk_text(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
    *,
    respect_boundaries: bool = False,
) -> List[Chunk]:
    """Split *text* into overlapping :class:`Chunk` objects."""

    config = ChunkingConfig(
        chunk_chars=chunk_size,
        overlap_chars=overlap,
        respect_boundaries=respect_boundaries,
    )
    return TextChunker(config).split(text)
