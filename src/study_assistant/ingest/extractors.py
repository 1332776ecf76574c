"""Text extraction for uploaded PDF documents."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import List

from PyPDF2 import PdfReader
from PyPDF2.errors import PyPdfError

from study_assistant.errors import DocumentExtractionError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PDFExtractionResult:
    text: str
    page_count: int


class PDFExtractor:
    """Extract the text layer of a PDF document page by page."""

    def extract(self, data: bytes) -> PDFExtractionResult:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = list(reader.pages)
        except (PyPdfError, ValueError, KeyError, OSError) as error:
            LOGGER.warning("Failed to open PDF: %s", error)
            raise DocumentExtractionError(f"Invalid PDF data received: {error}", cause=error) from error

        page_texts: List[str] = []
        for index, page in enumerate(pages, start=1):
            try:
                text = page.extract_text() or ""
            except Exception as error:  # pragma: no cover - depends on the PDF backend
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                text = ""
            page_texts.append(text)

        LOGGER.debug("Extracted %s pages", len(page_texts))
        return PDFExtractionResult(text="\n".join(page_texts), page_count=len(page_texts))
