from __future__ import annotations

import csv
import io

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from pipetakeoff.errors import ModelAuthenticationError, ModelCallFailure, ModelQuotaError
from pipetakeoff.llm import VisionModelClient
from pipetakeoff.services.takeoff import TakeoffService

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _upload(client: TestClient, name: str = "plan.pdf", content: bytes = b"%PDF-1.7 fake"):
    return client.post("/api/upload", files={"file": (name, content, "application/pdf")})


class _FailingClient(VisionModelClient):
    def __init__(self, error: Exception) -> None:
        self.error = error

    def invoke(self, image_base64, prompt, model, api_key):
        raise self.error


def test_root_redirects_to_docs(client: TestClient) -> None:
    response = client.get("/", follow_redirects=False)

    assert response.status_code in (302, 307)
    assert response.headers["location"] == "/docs"


def test_health_reports_status_and_sessions(client: TestClient) -> None:
    _upload(client)

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["sessions"] == 1
    assert "timestamp" in body


def test_security_headers_are_set(client: TestClient) -> None:
    response = client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-XSS-Protection"] == "1; mode=block"


def test_upload_then_fetch_pages(client: TestClient) -> None:
    response = _upload(client)

    assert response.status_code == 200
    body = response.json()
    assert body["fileName"] == "plan.pdf"
    assert body["pageCount"] == 3

    page = client.get(f"/api/upload/{body['sessionId']}/page/3")
    assert page.status_code == 200
    assert page.headers["content-type"] == "image/png"
    assert page.content.startswith(PNG_SIGNATURE)


def test_upload_rejects_invalid_files(client: TestClient) -> None:
    assert _upload(client, name="plan.txt").status_code == 400
    assert _upload(client, content=b"").status_code == 400
    too_big = _upload(client, content=b"x" * 2048)
    assert too_big.status_code == 400
    assert "exceeds" in too_big.json()["detail"]


def test_upload_reports_unreadable_pdf(client: TestClient, service: TakeoffService) -> None:
    service.ingestor.renderer.fail_on_open = True

    response = _upload(client)

    assert response.status_code == 422
    assert len(service.store) == 0


def test_missing_session_or_page_is_404(client: TestClient) -> None:
    session_id = _upload(client).json()["sessionId"]

    assert client.get("/api/upload/unknown/page/1").status_code == 404
    assert client.get(f"/api/upload/{session_id}/page/0").status_code == 404
    assert client.get(f"/api/upload/{session_id}/page/4").status_code == 404


def test_analysis_returns_materials(client: TestClient) -> None:
    session_id = _upload(client).json()["sessionId"]

    response = client.post(
        "/api/analysis",
        json={"sessionId": session_id, "pageNumber": 1, "apiKey": "sk-test"},
    )

    assert response.status_code == 200
    body = response.json()
    assert [item["category"] for item in body["materials"]] == ["Pipe", "Fitting", "Valve"]
    first = body["materials"][0]
    assert first["quantity"] == 150
    assert first["isManualEntry"] is False
    assert first["id"]
    assert body["drawingNotes"].startswith("MOCK_ANALYSIS")
    assert "analyzedAt" in body


def test_analysis_validates_request(client: TestClient) -> None:
    session_id = _upload(client).json()["sessionId"]

    missing_key = client.post("/api/analysis", json={"sessionId": session_id, "pageNumber": 1})
    missing_session = client.post("/api/analysis", json={"pageNumber": 1, "apiKey": "sk"})
    bad_page = client.post("/api/analysis", json={"sessionId": session_id, "pageNumber": 0, "apiKey": "sk"})
    out_of_range = client.post("/api/analysis", json={"sessionId": session_id, "pageNumber": 9, "apiKey": "sk"})
    unknown = client.post("/api/analysis", json={"sessionId": "gone", "pageNumber": 1, "apiKey": "sk"})

    assert missing_key.status_code == 400
    assert missing_session.status_code == 400
    assert bad_page.status_code == 400
    assert out_of_range.status_code == 400
    assert unknown.status_code == 404


def test_analysis_maps_model_failures(client: TestClient, service: TakeoffService) -> None:
    session_id = _upload(client).json()["sessionId"]
    payload = {"sessionId": session_id, "pageNumber": 1, "apiKey": "sk"}
    cases = [
        (ModelAuthenticationError("bad key", status_code=401), 401),
        (ModelQuotaError("quota", status_code=429), 429),
        (ModelCallFailure("server exploded", status_code=500), 502),
    ]

    for error, status in cases:
        service.vision_client = _FailingClient(error)
        response = client.post("/api/analysis", json=payload)
        assert response.status_code == status
        assert str(error) in response.json()["detail"]


def test_analysis_with_garbage_model_reply_returns_empty_list(client: TestClient, service: TakeoffService) -> None:
    service.vision_client.response = "I could not read this drawing."
    session_id = _upload(client).json()["sessionId"]

    response = client.post("/api/analysis", json={"sessionId": session_id, "pageNumber": 1, "apiKey": "sk"})

    assert response.status_code == 200
    assert response.json()["materials"] == []


def _materials():
    return [
        {"category": "Specialty", "description": "Cleanout", "quantity": 1, "unit": "EA", "confidence": "Low"},
        {"category": "Pipe", "description": '4" PVC Pipe', "quantity": 2, "unit": "LF", "confidence": "High"},
        {"category": "UnknownCat", "description": "Mystery", "quantity": 3, "isManualEntry": True},
        {"category": "Fitting", "description": '4" PVC Elbow', "quantity": 4},
    ]


def test_export_csv_attachment(client: TestClient) -> None:
    response = client.post("/api/export/csv", json={"materials": _materials()})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="takeoff-')
    assert disposition.endswith('.csv"')
    rows = list(csv.reader(io.StringIO(response.content.decode("utf-8"))))
    assert [row[0] for row in rows[1:]] == ["Pipe", "Fitting", "Specialty", "UnknownCat"]
    assert rows[2][1] == '4" PVC Elbow'


def test_export_excel_attachment(client: TestClient) -> None:
    response = client.post("/api/export/excel", json={"materials": _materials()})

    assert response.status_code == 200
    assert response.headers["content-disposition"].endswith('.xlsx"')
    sheet = load_workbook(io.BytesIO(response.content)).active
    values = [row for row in sheet.iter_rows(values_only=True)]
    assert values[-1][3:5] == ("GRAND TOTAL:", 10)


def test_export_rejects_empty_list(client: TestClient) -> None:
    assert client.post("/api/export/csv", json={"materials": []}).status_code == 400
    assert client.post("/api/export/excel", json={}).status_code == 400


def test_export_rejects_negative_quantity(client: TestClient) -> None:
    response = client.post(
        "/api/export/csv",
        json={"materials": [{"category": "Pipe", "quantity": -1}]},
    )
    assert response.status_code == 422


def test_export_rejects_implausible_quantity(client: TestClient) -> None:
    response = client.post(
        "/api/export/csv",
        json={"materials": [{"category": "Pipe", "quantity": "1e99999999"}]},
    )
    assert response.status_code == 422
