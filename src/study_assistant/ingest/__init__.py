"""Document ingestion: PDF extraction, normalisation and chunking."""
from __future__ import annotations

from .chunking import ChunkingConfig, TextChunker, chunk_text
from .extractors import PDFExtractionResult, PDFExtractor
from .models import Chunk, Document, IngestStatistics, PreparedDocument
from .normalization import normalize_text
from .pipeline import IngestPipeline, IngestPipelineConfig

__all__ = [
    "Chunk",
    "ChunkingConfig",
    "Document",
    "IngestPipeline",
    "IngestPipelineConfig",
    "IngestStatistics",
    "PDFExtractionResult",
    "PDFExtractor",
    "PreparedDocument",
    "TextChunker",
    "chunk_text",
    "normalize_text",
]
