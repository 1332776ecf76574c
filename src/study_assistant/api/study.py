"""API router exposing upload, chat and study-material endpoints."""
from __future__ import annotations

from typing import Any, Dict, List, Literal

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field

from study_assistant.errors import InvalidUpload
from study_assistant.services.study import StructuredResult, StudyService, get_study_service

router = APIRouter(tags=["study"])

UPLOAD_SUCCESS_MESSAGE = "PDF processed and ready for chat"
CHAT_CONTEXT_LABEL = "Based on the uploaded PDF content"


class UploadResponse(BaseModel):
    """Response body returned from the upload endpoint."""

    text: str
    filename: str
    size: int
    message: str


class ChatRequest(BaseModel):
    """Request body accepted by the chat endpoint."""

    question: str = Field(..., description="Question to ask about the uploaded PDF.")


class ChatResponse(BaseModel):
    response: str
    context: str
    timestamp: str


class Flashcard(BaseModel):
    model_config = ConfigDict(extra="allow")

    question: str
    answer: str


class MultipleChoiceQuestion(BaseModel):
    model_config = ConfigDict(extra="allow")

    question: str
    options: Dict[Literal["A", "B", "C", "D"], str]
    correct_answer: Literal["A", "B", "C", "D"]


class FlashcardsResponse(BaseModel):
    flashcards: List[Flashcard]
    count: int
    timestamp: str


class SummaryResponse(BaseModel):
    summary: List[str]
    count: int
    timestamp: str


class MCQResponse(BaseModel):
    mcqs: List[MultipleChoiceQuestion]
    count: int
    timestamp: str


def _structured_payload(key: str, result: StructuredResult) -> Dict[str, Any]:
    return {key: result.items, "count": result.count, "timestamp": result.timestamp}


@router.post("/upload", response_model=UploadResponse)
async def upload_pdf(
    pdf: UploadFile | None = File(None),
    service: StudyService = Depends(get_study_service),
) -> UploadResponse:
    """Replace the current document with the uploaded PDF."""

    if pdf is None:
        raise InvalidUpload("No PDF file uploaded")

    # One byte past the limit is enough to reject oversized files.
    data = await pdf.read(service.settings.max_upload_bytes + 1)
    result = await run_in_threadpool(service.ingest, data, pdf.filename or "upload.pdf", pdf.content_type)
    return UploadResponse(
        text=result.document.raw_text,
        filename=result.document.filename,
        size=result.document.size_bytes,
        message=UPLOAD_SUCCESS_MESSAGE,
    )


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    service: StudyService = Depends(get_study_service),
) -> ChatResponse:
    """Answer a free-form question from the uploaded PDF."""

    result = service.chat(request.question)
    return ChatResponse(response=result.response, context=CHAT_CONTEXT_LABEL, timestamp=result.timestamp)


@router.post("/flashcards", response_model=FlashcardsResponse)
def flashcards(service: StudyService = Depends(get_study_service)) -> Dict[str, Any]:
    return _structured_payload("flashcards", service.flashcards())


@router.post("/summarize", response_model=SummaryResponse)
def summarize(service: StudyService = Depends(get_study_service)) -> Dict[str, Any]:
    return _structured_payload("summary", service.summarize())


@router.post("/mcq", response_model=MCQResponse)
def mcq(service: StudyService = Depends(get_study_service)) -> Dict[str, Any]:
    return _structured_payload("mcqs", service.mcqs())
