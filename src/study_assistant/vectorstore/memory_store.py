"""Immutable in-memory vector index over the chunks of one document."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Sequence

import numpy as np

from study_assistant.embeddings import EmbeddingModel
from study_assistant.errors import EmbeddingProviderError
from study_assistant.ingest.models import Chunk, Document

LOGGER = logging.getLogger(__name__)

DEFAULT_TOP_K = 4


@dataclass(frozen=True, slots=True)
class RetrievedChunk:
    """A chunk returned from similarity search along with its cosine score."""

    chunk: Chunk
    score: float


def _normalise_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return matrix / norms


@dataclass(frozen=True, eq=False)
class DocumentIndex:
    """Embedded chunks of the current document.

    Instances are never mutated after :meth:`build`; replacing the active
    document means building a new index and installing it in the registry.
    """

    document: Document
    chunks: tuple[Chunk, ...]
    embeddings: np.ndarray
    embedding_model: EmbeddingModel
    version: int = 0

    @classmethod
    def build(
        cls,
        document: Document,
        chunks: Sequence[Chunk],
        embedding_model: EmbeddingModel,
    ) -> "DocumentIndex":
        """Embed every chunk and return a new index."""

        chunk_tuple = tuple(chunks)
        vectors = embedding_model.embed_texts([chunk.text for chunk in chunk_tuple])
        try:
            matrix = np.asarray(vectors, dtype=np.float64)
        except (TypeError, ValueError) as error:
            raise EmbeddingProviderError(f"Embedding provider returned invalid vectors: {error}", cause=error) from error
        if matrix.ndim != 2 or matrix.shape[0] != len(chunk_tuple):
            raise EmbeddingProviderError(
                f"Embedding provider returned vectors of shape {matrix.shape} for {len(chunk_tuple)} chunks"
            )
        matrix = _normalise_rows(matrix)
        matrix.setflags(write=False)
        LOGGER.debug("Built index for %s with %s chunks", document.filename, len(chunk_tuple))
        return cls(
            document=document,
            chunks=chunk_tuple,
            embeddings=matrix,
            embedding_model=embedding_model,
        )

    @property
    def dimension(self) -> int:
        return int(self.embeddings.shape[1]) if self.embeddings.ndim == 2 else 0

    def with_version(self, version: int) -> "DocumentIndex":
        return replace(self, version=version)

    def retrieve(self, query: str, k: int = DEFAULT_TOP_K) -> List[RetrievedChunk]:
        """Return at most *k* chunks ordered by descending cosine similarity.

        Ties keep ascending chunk ordinal.
        """

        if k <= 0 or not self.chunks:
            return []
        query_vectors = self.embedding_model.embed_texts([query])
        query_vector = np.asarray(query_vectors[0], dtype=np.float64)
        if query_vector.shape != (self.dimension,):
            raise EmbeddingProviderError(
                f"Query embedding has dimension {query_vector.size}, index expects {self.dimension}"
            )
        norm = np.linalg.norm(query_vector)
        if norm:
            query_vector = query_vector / norm

        scores = self.embeddings @ query_vector
        order = np.argsort(-scores, kind="stable")[:k]
        return [RetrievedChunk(chunk=self.chunks[i], score=float(scores[i])) for i in order]
