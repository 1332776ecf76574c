"""Command line helper that checks whether the configured providers respond."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Any

from study_assistant.embeddings import get_embedding_model
from study_assistant.errors import StudyServiceError
from study_assistant.llm_provider import get_llm
from study_assistant.logging_config import configure_logging
from study_assistant.settings import get_settings

LOGGER = logging.getLogger(__name__)

PROBE_TEXT = "ping"
PROBE_PROMPT = "Reply with the single word: pong"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--probe",
        action="store_true",
        help="Send one small request to the embedding and chat providers.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    llm = get_llm()
    embedding_model = get_embedding_model()
    report: dict[str, Any] = {
        "chat": asdict(llm.status()),
        "embedding": {"backend": settings.embedding_backend, "model": embedding_model.model_name},
    }

    failed = False
    if args.probe:
        try:
            vectors = embedding_model.embed_texts([PROBE_TEXT])
            report["embedding"]["dimension"] = len(vectors[0])
        except StudyServiceError as error:
            LOGGER.error("Embedding probe failed: %s", error)
            report["embedding"]["error"] = error.message
            failed = True
        try:
            report["chat"]["reply"] = llm.generate(PROBE_PROMPT, temperature=0.0).strip()
        except StudyServiceError as error:
            LOGGER.error("Chat probe failed: %s", error)
            report["chat"]["error"] = error.message
            failed = True

    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
