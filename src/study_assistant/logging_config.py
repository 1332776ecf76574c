"""JSON logging for the API process and the upload audit trail."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOGGER_NAME = "study_assistant.upload.audit"
AUDIT_LOG_FILENAME = "upload_audit.log"

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_STANDARD_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class MinimalJSONFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    Dict messages (the shape produced by :mod:`study_assistant.telemetry`)
    are merged into the top level instead of being stringified.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
        }

        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            text = record.getMessage()
            if text:
                payload["message"] = text

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        )
        return json.dumps(payload, ensure_ascii=False, default=str)


def build_logging_config(level: str, log_dir: Path) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping used by :func:`configure_logging`."""

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": MinimalJSONFormatter}},
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
            "upload_audit": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / AUDIT_LOG_FILENAME),
                "encoding": "utf-8",
                "formatter": "json",
            },
        },
        "root": {"level": level, "handlers": ["stderr"]},
        "loggers": {
            AUDIT_LOGGER_NAME: {
                "level": "INFO",
                "handlers": ["upload_audit"],
                "propagate": False,
            },
        },
    }


def configure_logging(level: str = "INFO", log_dir: Path | str = "logs") -> None:
    """Send JSON logs to stderr and upload audit records to ``log_dir``."""

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(level.upper(), directory))
