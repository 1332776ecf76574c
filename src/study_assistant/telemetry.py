"""Centralised observability helpers for structured lifecycle logging."""

from __future__ import annotations

import logging
import os
import platform
import sys
import traceback
from typing import Any, Iterable, Optional

LOGGER = logging.getLogger("study_assistant.telemetry")

_ENV_KEYS_TO_LOG: tuple[str, ...] = (
    "PORT",
    "CHAT_MODEL",
    "LLM_TEMPERATURE",
    "LLM_JSON_MODE",
    "EMBEDDING_BACKEND",
    "EMBEDDING_MODEL",
    "CHUNK_SIZE",
    "CHUNK_OVERLAP",
    "CHUNK_RESPECT_BOUNDARIES",
    "RETRIEVAL_TOP_K",
    "MAX_UPLOAD_BYTES",
)


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_app_startup_event() -> None:
    env_values = {key: os.getenv(key) for key in _ENV_KEYS_TO_LOG if os.getenv(key) is not None}
    details = {
        "env": env_values,
        "openai_api_key_set": bool(os.getenv("OPENAI_API_KEY")),
        "python": sys.version.split()[0],
        "platform": platform.platform(),
    }
    log_event(LOGGER, "app.startup", details=details, pid=os.getpid())


def emit_ingest_event(
    step: str,
    *,
    file_name: str,
    size_bytes: int | None = None,
    duration_ms: float | None = None,
    pages: int | None = None,
    chunks: int | None = None,
    error: BaseException | None = None,
) -> None:
    details = {
        "file": file_name,
        "size_bytes": size_bytes,
        "pages": pages,
        "chunks": chunks,
    }
    level = "error" if error else "info"
    log_event(LOGGER, step, level=level, duration_ms=duration_ms, details=details, exc=error)


def emit_embeddings_event(
    *, model: str, count: int, duration_ms: float, errors: list[str] | None = None
) -> None:
    details = {
        "model": model,
        "count": count,
        "errors": errors or [],
        "per_item_ms": round(duration_ms / count, 3) if count else None,
    }
    log_event(LOGGER, "embeddings.compute", duration_ms=duration_ms, details=details)


def emit_index_event(
    step: str,
    *,
    version: int | None,
    file_name: str,
    chunks: int,
    dimension: int | None = None,
) -> None:
    details = {
        "version": version,
        "file": file_name,
        "chunks": chunks,
        "dimension": dimension,
    }
    log_event(LOGGER, step, details=details)


def emit_retriever_event(
    *,
    query: str,
    top_k: int,
    index_version: int | None,
    results: list[dict[str, Any]],
    duration_ms: float,
) -> None:
    details = {
        "query_preview": query[:120],
        "top_k": top_k,
        "index_version": index_version,
        "results": results,
    }
    log_event(LOGGER, "retriever.search", duration_ms=duration_ms, details=details)


def emit_inference_request(
    *,
    req_id: str,
    model: str,
    prompt_preview: str,
    prompt_len: int,
    temperature: float,
    json_mode: bool,
    sources: Iterable[int],
) -> None:
    details = {
        "model": model,
        "prompt_preview": prompt_preview[:120],
        "prompt_len": prompt_len,
        "temperature": temperature,
        "json_mode": json_mode,
        "sources": list(sources),
    }
    log_event(LOGGER, "inference.request", req_id=req_id, details=details)


def emit_inference_result(
    *,
    req_id: str,
    duration_ms: float,
    model_used: str,
    answer_preview: str,
) -> None:
    details = {
        "model_used": model_used,
        "answer_preview": answer_preview[:120],
        "answer_len": len(answer_preview),
    }
    log_event(LOGGER, "inference.result", req_id=req_id, duration_ms=duration_ms, details=details)


def emit_extraction_event(
    *,
    variant: str,
    count: int,
    error: BaseException | None = None,
) -> None:
    details = {"variant": variant, "count": count}
    level = "warning" if error else "info"
    log_event(LOGGER, "extraction.parse", level=level, details=details, exc=str(error) if error else None)


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        details=details,
        exc=error,
    )


__all__ = [
    "emit_app_startup_event",
    "emit_embeddings_event",
    "emit_exception",
    "emit_extraction_event",
    "emit_index_event",
    "emit_inference_request",
    "emit_inference_result",
    "emit_ingest_event",
    "emit_retriever_event",
    "log_event",
]
