from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, List

from study_assistant.embeddings import EmbeddingModel, get_embedding_model
from study_assistant.errors import InvalidUpload, StudyServiceError
from study_assistant.extraction import ExtractionVariant, parse_structured
from study_assistant.ingest import Document, IngestPipeline, IngestPipelineConfig
from study_assistant.llm_provider import LLM, get_llm
from study_assistant.logging_config import AUDIT_LOGGER_NAME
from study_assistant.prompt_builder import instruction_for
from study_assistant.services.responder import RetrievalResponder
from study_assistant.settings import Settings, get_settings
from study_assistant.telemetry import (
    emit_exception,
    emit_extraction_event,
    emit_ingest_event,
)
from study_assistant.vectorstore import (
    DocumentIndex,
    IndexRegistry,
    RetrievedChunk,
    get_index_registry,
)

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)

PDF_CONTENT_TYPE = "application/pdf"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class UploadResult:
    """Structured result returned from :meth:`StudyService.ingest`."""

    document: Document
    chunk_count: int
    index_version: int
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class ChatResult:
    """Structured result returned from :meth:`StudyService.chat`."""

    response: str
    sources: List[RetrievedChunk]
    timestamp: str


@dataclass(frozen=True, slots=True)
class StructuredResult:
    """Validated flashcards, summary points or MCQs."""

    variant: ExtractionVariant
    items: List[Any]
    timestamp: str

    @property
    def count(self) -> int:
        return len(self.items)


class StudyService:
    """High level orchestration of upload, chat and study-material generation."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        pipeline: IngestPipeline | None = None,
        embedding_model: EmbeddingModel | None = None,
        registry: IndexRegistry | None = None,
        llm: LLM | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.pipeline = pipeline or IngestPipeline(
            IngestPipelineConfig(
                chunk_chars=self.settings.chunk_size,
                overlap_chars=self.settings.chunk_overlap,
                respect_boundaries=self.settings.chunk_respect_boundaries,
            )
        )
        self.embedding_model = embedding_model or get_embedding_model()
        self.registry = registry or get_index_registry()
        self.llm = llm or get_llm()
        self.responder = RetrievalResponder(
            self.registry,
            self.llm,
            top_k=self.settings.retrieval_top_k,
            temperature=self.settings.temperature,
        )

    def ingest(self, data: bytes | None, filename: str | None, content_type: str | None) -> UploadResult:
        """Validate, extract, chunk and embed an upload, then make it current.

        The registry is only touched after every stage succeeded, so a failed
        upload leaves the previously loaded document in place.
        """

        data, filename = self._validate_upload(data, filename, content_type)

        started = time.perf_counter()
        emit_ingest_event("ingest.file.start", file_name=filename, size_bytes=len(data))
        try:
            prepared = self.pipeline.prepare(data, filename)
            index = DocumentIndex.build(prepared.document, prepared.chunks, self.embedding_model)
        except StudyServiceError as error:
            emit_ingest_event(
                "ingest.file.error",
                file_name=filename,
                size_bytes=len(data),
                duration_ms=(time.perf_counter() - started) * 1000.0,
                error=error,
            )
            emit_exception(module=f"{__name__}.ingest", error=error)
            raise

        installed = self.registry.install(index)
        duration = time.perf_counter() - started
        emit_ingest_event(
            "ingest.file.complete",
            file_name=filename,
            size_bytes=len(data),
            duration_ms=duration * 1000.0,
            pages=prepared.statistics.page_count,
            chunks=prepared.statistics.chunk_count,
        )
        AUDIT_LOGGER.info(
            {
                "event": "upload",
                "filename": filename,
                "size_bytes": len(data),
                "chunks": len(prepared.chunks),
                "index_version": installed.version,
            }
        )
        return UploadResult(
            document=prepared.document,
            chunk_count=len(prepared.chunks),
            index_version=installed.version,
            duration_seconds=duration,
        )

    def chat(self, question: str) -> ChatResult:
        try:
            answer = self.responder.answer(question)
        except StudyServiceError as error:
            emit_exception(module=f"{__name__}.chat", error=error)
            raise
        return ChatResult(response=answer.text, sources=answer.sources, timestamp=utc_timestamp())

    def flashcards(self) -> StructuredResult:
        return self._generate_structured(ExtractionVariant.FLASHCARDS)

    def summarize(self) -> StructuredResult:
        return self._generate_structured(ExtractionVariant.SUMMARY)

    def mcqs(self) -> StructuredResult:
        return self._generate_structured(ExtractionVariant.MCQ)

    def status(self) -> dict[str, Any]:
        index = self.registry.peek()
        llm_status = self.llm.status()
        payload: dict[str, Any] = {
            "document_loaded": index is not None,
            "chat_model": llm_status.model_name,
            "chat_model_configured": llm_status.configured,
            "embedding_model": self.embedding_model.model_name,
        }
        if index is not None:
            payload.update(
                filename=index.document.filename,
                chunks=len(index.chunks),
                index_version=index.version,
            )
        if llm_status.error:
            payload["reason"] = llm_status.error
        return payload

    def _generate_structured(self, variant: ExtractionVariant) -> StructuredResult:
        json_mode = self.settings.json_mode
        try:
            answer = self.responder.answer(instruction_for(variant, json_mode=json_mode), json_mode=json_mode)
        except StudyServiceError as error:
            emit_exception(module=f"{__name__}.{variant.value}", error=error)
            raise

        result = parse_structured(variant, answer.text)
        emit_extraction_event(variant=variant.value, count=len(result.items), error=result.error)
        return StructuredResult(variant=variant, items=result.unwrap(), timestamp=utc_timestamp())

    def _validate_upload(
        self, data: bytes | None, filename: str | None, content_type: str | None
    ) -> tuple[bytes, str]:
        if not data or filename is None:
            raise InvalidUpload("No PDF file uploaded")
        if content_type != PDF_CONTENT_TYPE:
            raise InvalidUpload("File must be a PDF")
        if len(data) > self.settings.max_upload_bytes:
            raise InvalidUpload(
                f"File exceeds the maximum upload size of {self.settings.max_upload_bytes} bytes"
            )
        return data, filename


@lru_cache()
def get_study_service() -> StudyService:
    """FastAPI dependency returning the shared :class:`StudyService` instance."""

    return StudyService()


def reset_study_service_cache() -> None:
    get_study_service.cache_clear()  # type: ignore[attr-defined]
