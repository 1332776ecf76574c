"""Recover validated JSON arrays from free-text model output.

Models are asked to answer with only a JSON array but routinely wrap it in
commentary. The extractor slices from the first ``[`` to the last ``]`` and
parses that. Brackets appearing in the commentary before the real array make
the slice wrong; that case is reported as malformed output rather than
guessed around.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

from study_assistant.errors import MalformedModelOutput

MCQ_OPTION_KEYS = ("A", "B", "C", "D")


class ExtractionVariant(str, Enum):
    """Structured outputs the service knows how to request and validate."""

    FLASHCARDS = "flashcards"
    SUMMARY = "summary"
    MCQ = "mcq"


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Outcome of :func:`parse_structured`: either ``items`` or an ``error``."""

    variant: ExtractionVariant
    items: List[Any] = field(default_factory=list)
    error: MalformedModelOutput | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[Any]:
        if self.error is not None:
            raise self.error
        return self.items


class _ElementError(Exception):
    """Internal signal carrying the violated rule for one element."""

    def __init__(self, rule: str) -> None:
        super().__init__(rule)
        self.rule = rule


def _require_string_field(element: Dict[str, Any], name: str) -> None:
    if name not in element:
        raise _ElementError(f"missing field '{name}'")
    value = element[name]
    if not isinstance(value, str):
        raise _ElementError(f"field '{name}' must be a string, got {type(value).__name__}")
    if not value.strip():
        raise _ElementError(f"field '{name}' must not be empty")


def _require_object(element: Any) -> Dict[str, Any]:
    if not isinstance(element, dict):
        raise _ElementError(f"expected an object, got {type(element).__name__}")
    return element


def _validate_flashcard(element: Any) -> None:
    card = _require_object(element)
    _require_string_field(card, "question")
    _require_string_field(card, "answer")


def _validate_summary_point(element: Any) -> None:
    if not isinstance(element, str):
        raise _ElementError(f"expected a string, got {type(element).__name__}")
    if not element.strip():
        raise _ElementError("summary point must not be empty")


def _validate_mcq(element: Any) -> None:
    mcq = _require_object(element)
    _require_string_field(mcq, "question")

    if "options" not in mcq:
        raise _ElementError("missing field 'options'")
    options = mcq["options"]
    if not isinstance(options, dict):
        raise _ElementError(f"field 'options' must be an object, got {type(options).__name__}")
    if set(options) != set(MCQ_OPTION_KEYS):
        found = ", ".join(sorted(str(key) for key in options)) or "none"
        raise _ElementError(f"invalid option-key set: expected A, B, C, D; got {found}")
    for key in MCQ_OPTION_KEYS:
        if not isinstance(options[key], str):
            raise _ElementError(f"option '{key}' must be a string, got {type(options[key]).__name__}")

    if "correct_answer" not in mcq:
        raise _ElementError("missing field 'correct_answer'")
    answer = mcq["correct_answer"]
    if not isinstance(answer, str) or answer not in MCQ_OPTION_KEYS:
        raise _ElementError(f"correct_answer must be one of A, B, C, D; got {answer!r}")


_VALIDATORS: Dict[ExtractionVariant, Callable[[Any], None]] = {
    ExtractionVariant.FLASHCARDS: _validate_flashcard,
    ExtractionVariant.SUMMARY: _validate_summary_point,
    ExtractionVariant.MCQ: _validate_mcq,
}


def extract_json_array(text: str, variant: ExtractionVariant) -> List[Any]:
    """Slice the outermost bracketed span out of *text* and parse it."""

    if not isinstance(text, str):
        raise MalformedModelOutput("Model output is not text", variant=variant.value)

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or start > end:
        raise MalformedModelOutput(
            f"No JSON array found in model output for {variant.value}",
            variant=variant.value,
        )

    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as error:
        raise MalformedModelOutput(
            f"Failed to parse {variant.value} JSON: {error}",
            variant=variant.value,
            cause=error,
        ) from error

    if not isinstance(parsed, list):
        raise MalformedModelOutput(
            f"Expected a JSON array for {variant.value}, got {type(parsed).__name__}",
            variant=variant.value,
        )
    return parsed


def extract_structured(variant: ExtractionVariant, text: str) -> List[Any]:
    """Parse and validate *text*, raising :class:`MalformedModelOutput` on failure."""

    items = extract_json_array(text, variant)
    validator = _VALIDATORS[variant]
    for index, element in enumerate(items):
        try:
            validator(element)
        except _ElementError as error:
            raise MalformedModelOutput(
                f"Invalid {variant.value} item at index {index}: {error.rule}",
                variant=variant.value,
                index=index,
                rule=error.rule,
            ) from None
    return items


def parse_structured(variant: ExtractionVariant, text: str) -> ExtractionResult:
    """Non-raising form of :func:`extract_structured`."""

    try:
        items = extract_structured(variant, text)
    except MalformedModelOutput as error:
        return ExtractionResult(variant=variant, error=error)
    return ExtractionResult(variant=variant, items=items)


def extract_flashcards(text: str) -> List[Dict[str, Any]]:
    return extract_structured(ExtractionVariant.FLASHCARDS, text)


def extract_summary(text: str) -> List[str]:
    return extract_structured(ExtractionVariant.SUMMARY, text)


def extract_mcqs(text: str) -> List[Dict[str, Any]]:
    return extract_structured(ExtractionVariant.MCQ, text)


__all__ = [
    "ExtractionResult",
    "ExtractionVariant",
    "MCQ_OPTION_KEYS",
    "extract_flashcards",
    "extract_json_array",
    "extract_mcqs",
    "extract_structured",
    "extract_summary",
    "parse_structured",
]
