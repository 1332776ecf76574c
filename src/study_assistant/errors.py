"""Error taxonomy shared by the ingestion, retrieval and generation layers."""
from __future__ import annotations


class StudyServiceError(RuntimeError):
    """Base class for failures that are surfaced to HTTP clients."""

    status_code: int = 500

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.__cause__ = cause


class InvalidUpload(StudyServiceError):
    """Raised when the uploaded file is missing, not a PDF or too large."""

    status_code = 400


class NoDocumentLoaded(StudyServiceError):
    """Raised when a feature is requested before any successful upload."""

    status_code = 400

    def __init__(self, message: str = "No PDF uploaded yet", *, cause: Exception | None = None) -> None:
        super().__init__(message, cause=cause)


class EmptyDocument(StudyServiceError):
    """Raised when a document contains no readable text."""

    def __init__(self, message: str = "PDF contains no readable text", *, cause: Exception | None = None) -> None:
        super().__init__(message, cause=cause)


class DocumentExtractionError(StudyServiceError):
    """Raised when the PDF parser cannot read the uploaded bytes."""


class EmbeddingProviderError(StudyServiceError):
    """Raised when the embedding provider fails (network, quota, auth)."""


class GenerationProviderError(StudyServiceError):
    """Raised when the chat-completion provider fails or returns nothing usable."""


class MalformedModelOutput(StudyServiceError):
    """Raised when generated text does not hold a valid structured array."""

    def __init__(
        self,
        message: str,
        *,
        variant: str | None = None,
        index: int | None = None,
        rule: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.variant = variant
        self.index = index
        self.rule = rule


__all__ = [
    "DocumentExtractionError",
    "EmbeddingProviderError",
    "EmptyDocument",
    "GenerationProviderError",
    "InvalidUpload",
    "MalformedModelOutput",
    "NoDocumentLoaded",
    "StudyServiceError",
]
