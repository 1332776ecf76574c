"""High level ingestion pipeline entry point."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol

from .chunking import ChunkingConfig, TextChunker
from .extractors import PDFExtractionResult, PDFExtractor
from .models import Document, IngestStatistics, PreparedDocument
from .normalization import normalize_text

LOGGER = logging.getLogger(__name__)


class TextExtractor(Protocol):
    def extract(self, data: bytes) -> PDFExtractionResult:
        """Return the text layer of *data*."""


@dataclass(frozen=True, slots=True)
class IngestPipelineConfig:
    chunk_chars: int = 1000
    overlap_chars: int = 200
    respect_boundaries: bool = False


class IngestPipeline:
    """Pipeline orchestrating extraction, normalisation and chunking.

    Each stage raises its own error type and the first failure ends the run:
    :class:`~study_assistant.errors.DocumentExtractionError` from extraction,
    :class:`~study_assistant.errors.EmptyDocument` from normalisation.
    The pipeline holds no per-upload state, so one instance can serve
    concurrent uploads.
    """

    def __init__(
        self,
        config: Optional[IngestPipelineConfig] = None,
        *,
        extractor: Optional[TextExtractor] = None,
    ) -> None:
        self.config = config or IngestPipelineConfig()
        self.extractor = extractor or PDFExtractor()
        self.chunker = TextChunker(
            ChunkingConfig(
                chunk_chars=self.config.chunk_chars,
                overlap_chars=self.config.overlap_chars,
                respect_boundaries=self.config.respect_boundaries,
            )
        )

    def prepare(self, data: bytes, file_name: str) -> PreparedDocument:
        """Turn uploaded PDF bytes into a document, its chunks and run statistics."""

        started = time.perf_counter()
        extraction = self.extractor.extract(data)
        normalized = normalize_text(extraction.text)
        chunks = tuple(self.chunker.split(normalized))

        document = Document(
            raw_text=extraction.text,
            normalized_text=normalized,
            filename=file_name,
            size_bytes=len(data),
            page_count=extraction.page_count,
        )
        statistics = IngestStatistics(
            file_name=file_name,
            duration_seconds=time.perf_counter() - started,
            page_count=extraction.page_count,
            chunk_count=len(chunks),
        )
        LOGGER.info("Generated %s chunks for file %s", len(chunks), file_name)
        return PreparedDocument(document=document, chunks=chunks, statistics=statistics)
