"""In-memory vector index for the currently loaded document."""

from __future__ import annotations

from .memory_store import DEFAULT_TOP_K, DocumentIndex, RetrievedChunk
from .registry import IndexRegistry, get_index_registry

__all__ = [
    "DEFAULT_TOP_K",
    "DocumentIndex",
    "IndexRegistry",
    "RetrievedChunk",
    "get_index_registry",
]
