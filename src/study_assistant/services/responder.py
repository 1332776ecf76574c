from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import List

from study_assistant.llm_provider import LLM
from study_assistant.prompt_builder import build_prompt
from study_assistant.telemetry import (
    emit_inference_request,
    emit_inference_result,
    emit_retriever_event,
)
from study_assistant.vectorstore import DEFAULT_TOP_K, IndexRegistry, RetrievedChunk

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResponderAnswer:
    """Raw model text together with the chunks it was grounded on."""

    text: str
    sources: List[RetrievedChunk]
    index_version: int


class RetrievalResponder:
    """Answer an instruction from the chunks of the current document.

    The responder does not care what the caller does with the text: chat
    questions and structured-output requests go through the same path and
    differ only in the instruction they send.
    """

    def __init__(
        self,
        registry: IndexRegistry,
        llm: LLM,
        *,
        top_k: int = DEFAULT_TOP_K,
        temperature: float = 0.7,
    ) -> None:
        self._registry = registry
        self._llm = llm
        self.top_k = top_k
        self.temperature = temperature

    def answer(self, instruction: str, *, json_mode: bool = False) -> ResponderAnswer:
        index = self._registry.snapshot()

        started = time.perf_counter()
        sources = index.retrieve(instruction, self.top_k)
        emit_retriever_event(
            query=instruction,
            top_k=self.top_k,
            index_version=index.version,
            results=[{"ordinal": item.chunk.ordinal, "score": round(item.score, 4)} for item in sources],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )

        prompt = build_prompt(instruction, sources)
        req_id = uuid.uuid4().hex
        emit_inference_request(
            req_id=req_id,
            model=self._llm.model_name,
            prompt_preview=prompt,
            prompt_len=len(prompt),
            temperature=self.temperature,
            json_mode=json_mode,
            sources=[item.chunk.ordinal for item in sources],
        )
        inference_started = time.perf_counter()
        text = self._llm.generate(prompt, temperature=self.temperature, json_mode=json_mode)
        emit_inference_result(
            req_id=req_id,
            duration_ms=(time.perf_counter() - inference_started) * 1000.0,
            model_used=self._llm.model_name,
            answer_preview=text,
        )
        return ResponderAnswer(text=text, sources=sources, index_version=index.version)
