"""Service layer wiring ingestion, retrieval and generation together."""

from .responder import ResponderAnswer, RetrievalResponder
from .study import (
    ChatResult,
    StructuredResult,
    StudyService,
    UploadResult,
    get_study_service,
    reset_study_service_cache,
    utc_timestamp,
)

__all__ = [
    "ChatResult",
    "ResponderAnswer",
    "RetrievalResponder",
    "StructuredResult",
    "StudyService",
    "UploadResult",
    "get_study_service",
    "reset_study_service_cache",
    "utc_timestamp",
]
