"""Shared fixtures: deterministic fakes for the embedding, extraction and chat layers."""
from __future__ import annotations

import hashlib
import re
from typing import Callable, Iterator, List, Sequence

import numpy as np
import pytest
from fastapi.testclient import TestClient

from study_assistant.embeddings import EmbeddingModel
from study_assistant.errors import DocumentExtractionError
from study_assistant.ingest import IngestPipeline, IngestPipelineConfig, PDFExtractionResult
from study_assistant.llm_provider import LLM, LLMStatus
from study_assistant.services.study import StudyService, get_study_service
from study_assistant.settings import Settings
from study_assistant.vectorstore import IndexRegistry

_TOKEN_RE = re.compile(r"\w+")

SAMPLE_TEXT = (
    "Photosynthesis converts light energy into chemical energy inside chloroplasts. "
    "The light reactions split water and release oxygen. "
    "The Calvin cycle fixes carbon dioxide into sugar using ATP and NADPH. "
    "Cellular respiration later releases that stored energy in the mitochondria."
)

FLASHCARDS_OUTPUT = (
    'Here are your flashcards:\n[{"question": "Where does photosynthesis happen?", '
    '"answer": "In the chloroplasts"}, {"question": "What does the Calvin cycle fix?", '
    '"answer": "Carbon dioxide"}]\nGood luck!'
)
SUMMARY_OUTPUT = '["Light reactions release oxygen.", "The Calvin cycle builds sugar."]'
MCQ_OUTPUT = (
    '[{"question": "Which organelle hosts photosynthesis?", '
    '"options": {"A": "Nucleus", "B": "Chloroplast", "C": "Ribosome", "D": "Golgi"}, '
    '"correct_answer": "B"}]'
)


class HashingEmbeddingModel(EmbeddingModel):
    """Bag-of-words vectors hashed into a fixed number of buckets."""

    model_name = "hashing-test"

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension
        self.calls: List[List[str]] = []

    def _embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        vectors = []
        for text in texts:
            vector = np.zeros(self.dimension)
            for token in _TOKEN_RE.findall(text.lower()):
                bucket = int(hashlib.sha256(token.encode("utf-8")).hexdigest(), 16) % self.dimension
                vector[bucket] += 1.0
            vectors.append(vector.tolist())
        return vectors


class ScriptedLLM(LLM):
    """Returns canned responses and records every prompt it was given."""

    def __init__(self, responses: Sequence[str] | str = "stub answer", *, on_generate: Callable[[], None] | None = None) -> None:
        self.responses = [responses] if isinstance(responses, str) else list(responses)
        self._on_generate = on_generate
        self.calls: List[dict] = []

    @property
    def model_name(self) -> str:
        return "scripted-test"

    def generate(self, prompt: str, *, temperature: float, json_mode: bool = False) -> str:
        self.calls.append({"prompt": prompt, "temperature": temperature, "json_mode": json_mode})
        if self._on_generate is not None:
            self._on_generate()
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def status(self) -> LLMStatus:
        return LLMStatus(configured=True, model_name=self.model_name)


class StaticExtractor:
    """Pretends every upload is a PDF holding ``text``."""

    def __init__(self, text: str = SAMPLE_TEXT, *, page_count: int = 1) -> None:
        self.text = text
        self.page_count = page_count
        self.fail = False

    def extract(self, data: bytes) -> PDFExtractionResult:
        if self.fail:
            raise DocumentExtractionError("Invalid PDF data received: broken xref")
        return PDFExtractionResult(text=self.text, page_count=self.page_count)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("OPENAI_API_KEY", "EMBEDDING_BACKEND", "EMBEDDING_MODEL", "LLM_JSON_MODE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(chunk_size=120, chunk_overlap=20, retrieval_top_k=2, max_upload_bytes=1024)


@pytest.fixture
def embedding_model() -> HashingEmbeddingModel:
    return HashingEmbeddingModel()


@pytest.fixture
def extractor() -> StaticExtractor:
    return StaticExtractor()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM("Photosynthesis happens in the chloroplasts.")


@pytest.fixture
def registry() -> IndexRegistry:
    return IndexRegistry()


@pytest.fixture
def service(
    settings: Settings,
    extractor: StaticExtractor,
    embedding_model: HashingEmbeddingModel,
    registry: IndexRegistry,
    llm: ScriptedLLM,
) -> StudyService:
    pipeline = IngestPipeline(
        IngestPipelineConfig(chunk_chars=settings.chunk_size, overlap_chars=settings.chunk_overlap),
        extractor=extractor,
    )
    return StudyService(
        settings,
        pipeline=pipeline,
        embedding_model=embedding_model,
        registry=registry,
        llm=llm,
    )


@pytest.fixture
def client(service: StudyService) -> Iterator[TestClient]:
    from study_assistant.main import app

    app.dependency_overrides[get_study_service] = lambda: service
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


def upload(client: TestClient, data: bytes = b"%PDF-1.4 fake", *, filename: str = "notes.pdf", content_type: str = "application/pdf"):
    return client.post("/upload", files={"pdf": (filename, data, content_type)})
