"""Data models used by the ingestion pipeline."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Document:
    """The single uploaded document the service currently works with."""

    raw_text: str
    normalized_text: str
    filename: str
    size_bytes: int
    page_count: int = 0


@dataclass(frozen=True, slots=True)
class Chunk:
    """Contiguous slice of the normalised document text."""

    text: str
    ordinal: int
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class IngestStatistics:
    file_name: str
    duration_seconds: float
    page_count: int
    chunk_count: int


@dataclass(frozen=True, slots=True)
class PreparedDocument:
    """Document plus the chunks produced for it, ready to be embedded."""

    document: Document
    chunks: tuple[Chunk, ...]
    statistics: IngestStatistics
