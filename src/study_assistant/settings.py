"""Runtime configuration read from the environment."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEFAULT_CHAT_MODEL = "gpt-3.5-turbo"
DEFAULT_OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_LOCAL_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class Settings:
    openai_api_key: str | None = None
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    chat_model: str = DEFAULT_CHAT_MODEL
    temperature: float = 0.7
    json_mode: bool = False
    embedding_backend: str = "openai"
    embedding_model: str = DEFAULT_OPENAI_EMBEDDING_MODEL
    embedding_batch_size: int = 64
    chunk_size: int = 1000
    chunk_overlap: int = 200
    chunk_respect_boundaries: bool = False
    retrieval_top_k: int = 4
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    cors_allow_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


def load_settings() -> Settings:
    """Build a :class:`Settings` instance from the current environment."""

    backend = (_env_str("EMBEDDING_BACKEND", "openai") or "openai").lower()
    default_embedding_model = (
        DEFAULT_LOCAL_EMBEDDING_MODEL if backend == "sentence-transformers" else DEFAULT_OPENAI_EMBEDDING_MODEL
    )
    origins = _env_str("CORS_ALLOW_ORIGINS", "*") or "*"

    return Settings(
        openai_api_key=_env_str("OPENAI_API_KEY"),
        host=_env_str("HOST", "0.0.0.0") or "0.0.0.0",
        port=_int_from_env("PORT", DEFAULT_PORT),
        chat_model=_env_str("CHAT_MODEL", DEFAULT_CHAT_MODEL) or DEFAULT_CHAT_MODEL,
        temperature=_float_from_env("LLM_TEMPERATURE", 0.7),
        json_mode=_env_flag("LLM_JSON_MODE"),
        embedding_backend=backend,
        embedding_model=_env_str("EMBEDDING_MODEL", default_embedding_model) or default_embedding_model,
        embedding_batch_size=max(1, _int_from_env("EMBEDDING_BATCH_SIZE", 64)),
        chunk_size=_int_from_env("CHUNK_SIZE", 1000),
        chunk_overlap=_int_from_env("CHUNK_OVERLAP", 200),
        chunk_respect_boundaries=_env_flag("CHUNK_RESPECT_BOUNDARIES"),
        retrieval_top_k=max(1, _int_from_env("RETRIEVAL_TOP_K", 4)),
        max_upload_bytes=_int_from_env("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        cors_allow_origins=tuple(item.strip() for item in origins.split(",") if item.strip()),
        log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings, loading a ``.env`` file first when present."""

    load_dotenv()
    return load_settings()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]
