"""Access to the hosted chat-completion model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from study_assistant.errors import GenerationProviderError
from study_assistant.settings import get_settings

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class LLMStatus:
    """Structured status information about the configured LLM backend."""

    configured: bool
    model_name: str
    error: Optional[str] = None


class LLM:
    """Common interface exposed by language model implementations."""

    def generate(self, prompt: str, *, temperature: float, json_mode: bool = False) -> str:
        """Generate a response for the provided prompt."""

        raise NotImplementedError

    @property
    def model_name(self) -> str:
        return "stub"

    def status(self) -> LLMStatus:
        return LLMStatus(configured=False, model_name=self.model_name)


class OpenAIChatLLM(LLM):
    """Chat-completion backed by the OpenAI API.

    The client is created lazily so that the service can start without an
    API key; the first generation then fails with
    :class:`GenerationProviderError`.
    """

    def __init__(
        self,
        model_name: str,
        *,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._model_name = model_name
        self._api_key = api_key
        self._client = client

    @property
    def model_name(self) -> str:
        return self._model_name

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                self._client = OpenAI(api_key=self._api_key)
            except OpenAIError as error:
                raise GenerationProviderError(str(error), cause=error) from error
        return self._client

    def generate(self, prompt: str, *, temperature: float, json_mode: bool = False) -> str:
        client = self._get_client()
        request: dict[str, Any] = {
            "model": self._model_name,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            completion = client.chat.completions.create(**request)
        except OpenAIError as error:
            LOGGER.warning("Chat completion failed: %s", error)
            raise GenerationProviderError(str(error), cause=error) from error

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as error:
            raise GenerationProviderError(
                f"Malformed chat completion response: {error}", cause=error
            ) from error
        if content is None:
            raise GenerationProviderError("Chat completion returned no content")
        return content

    def status(self) -> LLMStatus:
        configured = self._client is not None or bool(self._api_key)
        error = None if configured else "OPENAI_API_KEY is not configured"
        return LLMStatus(configured=configured, model_name=self._model_name, error=error)


_GLOBAL_LLM: Optional[LLM] = None


def get_llm() -> LLM:
    """Return the lazily initialised chat model."""

    global _GLOBAL_LLM

    if _GLOBAL_LLM is None:
        settings = get_settings()
        _GLOBAL_LLM = OpenAIChatLLM(settings.chat_model, api_key=settings.openai_api_key)
        LOGGER.info("Configured chat model %s", settings.chat_model)
    return _GLOBAL_LLM


def reset_llm_cache() -> None:
    """Forget the cached chat model (primarily for testing)."""

    global _GLOBAL_LLM
    _GLOBAL_LLM = None


def get_llm_status() -> LLMStatus:
    return get_llm().status()


__all__ = [
    "LLM",
    "LLMStatus",
    "OpenAIChatLLM",
    "get_llm",
    "get_llm_status",
    "reset_llm_cache",
]
