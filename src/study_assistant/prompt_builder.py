"""Utilities for constructing prompts for the study assistant."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from study_assistant.extraction import ExtractionVariant
from study_assistant.vectorstore import RetrievedChunk

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


def _load_template(name: str) -> str:
    """Read and trim the contents of a template file."""
    return (_PROMPTS_DIR / name).read_text(encoding="utf-8").strip()


_CONTEXT_PREAMBLE = _load_template("context.txt")
_JSON_OBJECT_SUFFIX = _load_template("json_object.txt")
_INSTRUCTIONS = {
    ExtractionVariant.FLASHCARDS: _load_template("flashcards.txt"),
    ExtractionVariant.SUMMARY: _load_template("summary.txt"),
    ExtractionVariant.MCQ: _load_template("mcq.txt"),
}


def instruction_for(variant: ExtractionVariant, *, json_mode: bool = False) -> str:
    """Return the fixed instruction text used to request *variant* output."""

    instruction = _INSTRUCTIONS[variant]
    if json_mode:
        return f"{instruction}\n{_JSON_OBJECT_SUFFIX}"
    return instruction


def build_prompt(instruction: str, chunks: Sequence[RetrievedChunk]) -> str:
    """Compose the grounding context followed by the instruction verbatim."""

    if instruction is None:
        raise ValueError("instruction must not be None")

    sections = [
        f"Excerpt {position}: {item.chunk.text}"
        for position, item in enumerate(chunks, start=1)
        if item.chunk.text.strip()
    ]
    context_block = "\n\n".join(sections) if sections else "(no relevant excerpts found)"

    return f"{_CONTEXT_PREAMBLE}\n\n{context_block}\n\n{instruction}"


__all__ = ["build_prompt", "instruction_for"]
