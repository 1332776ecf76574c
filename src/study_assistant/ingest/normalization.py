"""Text normalisation utilities."""
from __future__ import annotations

import re

from study_assistant.errors import EmptyDocument

_WHITESPACE_RUN_RE = re.compile(r"\s+")


def normalize_text(text: object) -> str:
    """Collapse whitespace runs to single spaces and trim the result.

    Raises :class:`EmptyDocument` when nothing readable is left or when the
    input is not a string at all.
    """

    if not isinstance(text, str):
        raise EmptyDocument("Failed to extract text from PDF")
    normalized = _WHITESPACE_RUN_RE.sub(" ", text).strip()
    if not normalized:
        raise EmptyDocument()
    return normalized
