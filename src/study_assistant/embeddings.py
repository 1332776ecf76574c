"""Embedding providers: the hosted OpenAI API or a local Sentence Transformers model."""
from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, List, Sequence

from openai import OpenAI, OpenAIError

from study_assistant.errors import EmbeddingProviderError
from study_assistant.settings import Settings, get_settings
from study_assistant.telemetry import emit_embeddings_event

LOGGER = logging.getLogger(__name__)


class EmbeddingModel:
    """Common interface for embedding backends."""

    model_name: str = "unknown"

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """Return one vector per input text, instrumented with telemetry."""

        if not texts:
            return []
        started = time.perf_counter()
        try:
            embeddings = self._embed(list(texts))
        except EmbeddingProviderError as error:
            emit_embeddings_event(
                model=self.model_name,
                count=len(texts),
                duration_ms=(time.perf_counter() - started) * 1000.0,
                errors=[str(error)],
            )
            raise

        if len(embeddings) != len(texts):
            raise EmbeddingProviderError(
                f"Embedding provider returned {len(embeddings)} vectors for {len(texts)} texts"
            )
        emit_embeddings_event(
            model=self.model_name,
            count=len(texts),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return embeddings

    def _embed(self, texts: List[str]) -> List[List[float]]:
        raise NotImplementedError


class OpenAIEmbeddingModel(EmbeddingModel):
    """Embeddings computed by the OpenAI embeddings endpoint."""

    def __init__(
        self,
        model_name: str,
        *,
        api_key: str | None = None,
        batch_size: int = 64,
        client: Any | None = None,
    ) -> None:
        self.model_name = model_name
        self._api_key = api_key
        self._batch_size = max(1, batch_size)
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                self._client = OpenAI(api_key=self._api_key)
            except OpenAIError as error:
                raise EmbeddingProviderError(str(error), cause=error) from error
        return self._client

    def _embed(self, texts: List[str]) -> List[List[float]]:
        client = self._get_client()
        vectors: List[List[float]] = []
        for offset in range(0, len(texts), self._batch_size):
            batch = texts[offset : offset + self._batch_size]
            try:
                response = client.embeddings.create(model=self.model_name, input=batch)
                vectors.extend(list(item.embedding) for item in response.data)
            except OpenAIError as error:
                LOGGER.warning("Embedding request failed for batch at %s: %s", offset, error)
                raise EmbeddingProviderError(str(error), cause=error) from error
            except (AttributeError, TypeError) as error:
                raise EmbeddingProviderError(
                    f"Malformed embedding response: {error}", cause=error
                ) from error
        return vectors


class SentenceTransformerEmbeddingModel(EmbeddingModel):
    """Embeddings computed locally with a Sentence Transformers model."""

    def __init__(self, model_name: str, *, device: str | None = None) -> None:
        self.model_name = model_name
        self._device = device
        self._model: Any | None = None

    def _load(self) -> Any:
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as error:
                raise EmbeddingProviderError(
                    "EMBEDDING_BACKEND=sentence-transformers requires the 'sentence-transformers' package",
                    cause=error,
                ) from error
            try:
                self._model = SentenceTransformer(self.model_name, device=self._device)
            except Exception as error:  # pragma: no cover - depends on model download
                raise EmbeddingProviderError(
                    f"Failed to load sentence-transformers model '{self.model_name}': {error}",
                    cause=error,
                ) from error
        return self._model

    def _embed(self, texts: List[str]) -> List[List[float]]:
        model = self._load()
        try:
            embeddings = model.encode(
                texts,
                convert_to_numpy=True,
                show_progress_bar=False,
                normalize_embeddings=False,
            )
        except Exception as error:  # pragma: no cover - backend specific failures
            raise EmbeddingProviderError(f"Local embedding failed: {error}", cause=error) from error
        return embeddings.tolist()


def create_embedding_model(settings: Settings) -> EmbeddingModel:
    """Instantiate the embedding backend selected by ``EMBEDDING_BACKEND``."""

    backend = settings.embedding_backend
    if backend == "openai":
        return OpenAIEmbeddingModel(
            settings.embedding_model,
            api_key=settings.openai_api_key,
            batch_size=settings.embedding_batch_size,
        )
    if backend == "sentence-transformers":
        return SentenceTransformerEmbeddingModel(settings.embedding_model)
    raise ValueError(f"Unsupported EMBEDDING_BACKEND: {backend!r}")


@lru_cache()
def get_embedding_model() -> EmbeddingModel:
    """Return a cached embedding model instance."""

    return create_embedding_model(get_settings())


def reset_embedding_model_cache() -> None:
    """Clear the cached embedding model instance (primarily for testing)."""

    get_embedding_model.cache_clear()  # type: ignore[attr-defined]
