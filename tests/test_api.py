from __future__ import annotations

from datetime import datetime

import pytest

from study_assistant.api.study import CHAT_CONTEXT_LABEL, UPLOAD_SUCCESS_MESSAGE
from study_assistant.errors import GenerationProviderError

from conftest import FLASHCARDS_OUTPUT, MCQ_OUTPUT, SAMPLE_TEXT, SUMMARY_OUTPUT, upload


def _assert_timestamp(value: str) -> None:
    assert value.endswith("Z")
    datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_root_returns_plain_ok(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "ok"


def test_healthz_reports_document_state(client):
    before = client.get("/healthz").json()
    upload(client)
    after = client.get("/healthz").json()

    assert before["status"] == "ok"
    assert before["document_loaded"] is False
    assert after["document_loaded"] is True
    assert after["filename"] == "notes.pdf"


@pytest.mark.parametrize("path", ["/flashcards", "/summarize", "/mcq"])
def test_study_endpoints_require_a_document(client, path):
    response = client.post(path)

    assert response.status_code == 400
    assert response.json() == {"error": "No PDF uploaded yet"}


def test_chat_requires_a_document(client):
    response = client.post("/chat", json={"question": "What is this about?"})

    assert response.status_code == 400
    assert response.json() == {"error": "No PDF uploaded yet"}


def test_upload_returns_extracted_text(client):
    response = upload(client, b"%PDF-1.4 body", filename="bio.pdf")

    assert response.status_code == 200
    assert response.json() == {
        "text": SAMPLE_TEXT,
        "filename": "bio.pdf",
        "size": len(b"%PDF-1.4 body"),
        "message": UPLOAD_SUCCESS_MESSAGE,
    }


def test_upload_without_file_is_rejected(client):
    response = client.post("/upload")

    assert response.status_code == 400
    assert response.json() == {"error": "No PDF file uploaded"}


def test_upload_of_non_pdf_is_rejected(client):
    response = upload(client, b"plain text", filename="notes.txt", content_type="text/plain")

    assert response.status_code == 400
    assert response.json() == {"error": "File must be a PDF"}


def test_oversized_upload_is_rejected(client, service):
    response = upload(client, b"x" * (service.settings.max_upload_bytes + 1))

    assert response.status_code == 400
    assert "maximum upload size" in response.json()["error"]


def test_unreadable_pdf_is_a_server_error(client, extractor):
    extractor.fail = True

    response = upload(client)

    assert response.status_code == 500
    assert response.json()["error"].startswith("Invalid PDF data received")


def test_chat_after_upload(client, llm):
    upload(client)

    response = client.post("/chat", json={"question": "Where does photosynthesis happen?"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["response"] == "Photosynthesis happens in the chloroplasts."
    assert payload["context"] == CHAT_CONTEXT_LABEL
    _assert_timestamp(payload["timestamp"])
    assert "Where does photosynthesis happen?" in llm.calls[-1]["prompt"]


def test_empty_question_is_forwarded_to_the_model(client, llm):
    upload(client)

    response = client.post("/chat", json={"question": ""})

    assert response.status_code == 200
    assert response.json()["response"] == "Photosynthesis happens in the chloroplasts."
    assert len(llm.calls) == 1


@pytest.mark.parametrize("body", [{}, {"question": None}, {"question": 5}])
def test_chat_rejects_invalid_body(client, body):
    upload(client)

    response = client.post("/chat", json=body)

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request")


def test_flashcards_endpoint(client, llm):
    upload(client)
    llm.responses = [FLASHCARDS_OUTPUT]

    response = client.post("/flashcards")

    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 2 == len(payload["flashcards"])
    assert payload["flashcards"][0] == {
        "question": "Where does photosynthesis happen?",
        "answer": "In the chloroplasts",
    }
    _assert_timestamp(payload["timestamp"])


def test_flashcards_twice_without_new_upload_behaves_the_same(client, llm):
    upload(client)
    llm.responses = [FLASHCARDS_OUTPUT]

    first = client.post("/flashcards").json()
    second = client.post("/flashcards").json()

    assert first["flashcards"] == second["flashcards"]
    assert llm.calls[-1]["prompt"] == llm.calls[-2]["prompt"]


def test_summarize_endpoint(client, llm):
    upload(client)
    llm.responses = [SUMMARY_OUTPUT]

    response = client.post("/summarize")

    assert response.status_code == 200
    payload = response.json()
    assert payload["summary"] == ["Light reactions release oxygen.", "The Calvin cycle builds sugar."]
    assert payload["count"] == 2


def test_mcq_endpoint(client, llm):
    upload(client)
    llm.responses = [MCQ_OUTPUT]

    response = client.post("/mcq")

    assert response.status_code == 200
    mcq = response.json()["mcqs"][0]
    assert mcq["options"] == {"A": "Nucleus", "B": "Chloroplast", "C": "Ribosome", "D": "Golgi"}
    assert mcq["correct_answer"] == "B"


def test_malformed_model_output_is_a_server_error(client, llm):
    upload(client)
    llm.responses = ["Sorry, I cannot produce flashcards for this document."]

    response = client.post("/flashcards")

    assert response.status_code == 500
    assert "No JSON array found" in response.json()["error"]


def test_generation_failure_is_a_server_error(client, llm, monkeypatch):
    upload(client)

    def fail(prompt, *, temperature, json_mode=False):
        raise GenerationProviderError("upstream timeout")

    monkeypatch.setattr(llm, "generate", fail)

    response = client.post("/chat", json={"question": "Anything?"})

    assert response.status_code == 500
    assert response.json() == {"error": "upstream timeout"}


def test_new_upload_replaces_previous_document(client, extractor, llm):
    upload(client, filename="first.pdf")
    extractor.text = "Plate tectonics moves continents across the mantle."
    upload(client, filename="second.pdf")

    client.post("/chat", json={"question": "What moves continents?"})

    assert "Plate tectonics" in llm.calls[-1]["prompt"]
    assert "Photosynthesis" not in llm.calls[-1]["prompt"]
    assert client.get("/healthz").json()["index_version"] == 2
