from __future__ import annotations

import base64
import io

import docx

from bidengine.app.modules.bidgate.service import build_analysis_job
from bidengine.app.utils.documents import classify_document, extract_text


def test_classify_document_by_extension():
    assert classify_document("Tender.PDF") == "pdf"
    assert classify_document("brief.docx") == "docx"
    assert classify_document("legacy.doc") == "doc"
    assert classify_document("notes.txt") == "text"
    assert classify_document("README") == "text"
    assert classify_document(".pdf") == "pdf"
    assert classify_document(".DOCX") == "docx"


def test_analysis_job_for_binary_file_carries_base64_only():
    job = build_analysis_job(client_id="c1", tender_name=None, filename="t.pdf", content=b"%PDF-1.4", text_limit=10)

    assert job == {
        "body": {
            "clientId": "c1",
            "tenderName": "t.pdf",
            "fileName": "t.pdf",
            "fileType": "pdf",
            "fileBase64": base64.b64encode(b"%PDF-1.4").decode(),
        }
    }


def test_analyse_truncates_large_text_and_omits_base64(client, settings, workflow):
    settings.analysis_text_limit = 1000
    workflow.reply = [{"analysis": {"decision": "bid"}, "evidence_counts": {"Safety": 3}, "total_evidence": 3}]

    response = client.post(
        "/api/bidgate/analyse",
        files={"file": ("tender.txt", b"x" * 5000, "text/plain")},
        data={"clientId": "c1", "tenderName": "Ring Road"},
    )

    assert response.status_code == 200
    job = workflow.jobs[0]["body"]
    assert job["tenderText"] == "x" * 1000
    assert "fileBase64" not in job
    assert job["fileType"] == "text"
    assert response.json() == {
        "success": True,
        "analysis": {"decision": "bid"},
        "tender_name": "Ring Road",
        "evidence_counts": {"Safety": 3},
        "total_evidence": 3,
    }


def test_analyse_falls_back_to_file_name(client, workflow):
    workflow.reply = {"success": True, "analysis": "ok"}

    response = client.post(
        "/api/bidgate/analyse",
        files={"file": ("itt.pdf", b"%PDF-1.4", "application/pdf")},
        data={"clientId": "c1"},
    )

    assert response.json()["tender_name"] == "itt.pdf"
    assert "tenderText" not in workflow.jobs[0]["body"]


def test_analyse_requires_file_and_client(client):
    response = client.post("/api/bidgate/analyse", data={"clientId": "c1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing file or clientId"}


def test_analyse_relays_workflow_failure(client, workflow):
    workflow.status_code = 502

    response = client.post(
        "/api/bidgate/analyse",
        files={"file": ("t.txt", b"hello", "text/plain")},
        data={"clientId": "c1"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Analysis failed", "details": "workflow failed"}


def _docx_bytes(*paragraphs: str) -> bytes:
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def test_extract_text_from_docx_paragraphs():
    text = extract_text("case.docx", _docx_bytes("Zero RIDDORs in 2023.", "", "98% on-time delivery."))

    assert text == "Zero RIDDORs in 2023.\n98% on-time delivery."


def test_extract_text_rejects_short_legacy_doc():
    from bidengine.app.core.errors import ValidationError

    try:
        extract_text("old.doc", b"\x00\x01short")
    except ValidationError as exc:
        assert "convert to .docx" in exc.message
    else:
        raise AssertionError("expected ValidationError")


def test_bidvault_extract_posts_document_text(client, workflow):
    workflow.reply = {"records_created": 4}

    response = client.post(
        "/api/bidvault/extract",
        files={"file": ("kpis.txt", b"Accident frequency rate 0.05", "text/plain")},
        data={"clientId": "c1"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "records_created": 4}
    assert workflow.jobs == [
        {"document_text": "Accident frequency rate 0.05", "document_name": "kpis.txt", "client_id": "c1"}
    ]


def test_bidvault_extract_validation_errors(client):
    no_file = client.post("/api/bidvault/extract", data={"clientId": "c1"})
    no_client = client.post("/api/bidvault/extract", files={"file": ("a.txt", b"text", "text/plain")})
    empty = client.post(
        "/api/bidvault/extract", files={"file": ("a.txt", b"   ", "text/plain")}, data={"clientId": "c1"}
    )

    assert no_file.json() == {"error": "No file provided"}
    assert no_client.json() == {"error": "No clientId provided"}
    assert empty.json() == {"error": "Could not extract text from file"}
    assert {no_file.status_code, no_client.status_code, empty.status_code} == {400}


def test_bidvault_extract_failure_is_a_500(client, workflow):
    workflow.status_code = 500

    response = client.post(
        "/api/bidvault/extract", files={"file": ("a.txt", b"text", "text/plain")}, data={"clientId": "c1"}
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Extraction failed"
