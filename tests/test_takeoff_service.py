from __future__ import annotations

import base64

import pytest

from pipetakeoff.config import Settings
from pipetakeoff.errors import ModelQuotaError, PageOutOfRange, SessionNotFound
from pipetakeoff.extraction import DEFAULT_EXTRACTION_PROMPT
from pipetakeoff.llm import OpenAIVisionClient, VisionModelClient
from pipetakeoff.models import MaterialRecord
from pipetakeoff.providers import MockVisionClient
from pipetakeoff.services.takeoff import TakeoffService, build_vision_client


class _QuotaClient(VisionModelClient):
    def invoke(self, image_base64, prompt, model, api_key):
        raise ModelQuotaError("quota exceeded", status_code=429)


def test_analyze_sends_page_and_default_prompt(service: TakeoffService, mock_client: MockVisionClient) -> None:
    upload = service.upload(b"%PDF", "plan.pdf")

    outcome = service.analyze(upload.session_id, 2, "sk-test")

    (call,) = mock_client.calls
    assert call["prompt"] == DEFAULT_EXTRACTION_PROMPT
    assert call["model"] == "gpt-4o"
    assert base64.b64decode(call["image_base64"]) == service.page_image(upload.session_id, 2)
    assert [record.category for record in outcome.materials] == ["Pipe", "Fitting", "Valve"]
    assert outcome.drawing_notes == "MOCK_ANALYSIS: scale not verified"


def test_custom_prompt_replaces_default(service: TakeoffService, mock_client: MockVisionClient) -> None:
    upload = service.upload(b"%PDF", "plan.pdf")

    service.analyze(upload.session_id, 1, "sk-test", custom_prompt="Count valves only")

    assert mock_client.calls[0]["prompt"] == "Count valves only"


def test_blank_custom_prompt_falls_back_to_default(service: TakeoffService, mock_client: MockVisionClient) -> None:
    upload = service.upload(b"%PDF", "plan.pdf")

    service.analyze(upload.session_id, 1, "sk-test", custom_prompt="   ")

    assert mock_client.calls[0]["prompt"] == DEFAULT_EXTRACTION_PROMPT


def test_analyze_validates_session_and_page_before_calling_model(
    service: TakeoffService, mock_client: MockVisionClient
) -> None:
    upload = service.upload(b"%PDF", "plan.pdf")

    with pytest.raises(SessionNotFound):
        service.analyze("missing", 1, "sk-test")
    with pytest.raises(PageOutOfRange):
        service.analyze(upload.session_id, 4, "sk-test")
    assert mock_client.calls == []


def test_model_failures_propagate(service: TakeoffService) -> None:
    service.vision_client = _QuotaClient()
    upload = service.upload(b"%PDF", "plan.pdf")

    with pytest.raises(ModelQuotaError):
        service.analyze(upload.session_id, 1, "sk-test")


def test_exports_delegate_to_encoders(service: TakeoffService) -> None:
    records = [MaterialRecord(category="Pipe", quantity=3)]

    assert service.export_csv(records).startswith(b'"Category"')
    assert service.export_excel(records)[:2] == b"PK"


def test_build_vision_client_honours_provider() -> None:
    assert isinstance(build_vision_client(Settings(llm_provider="mock")), MockVisionClient)
    client = build_vision_client(Settings(openai_max_tokens=123, openai_timeout_seconds=9))
    assert isinstance(client, OpenAIVisionClient)
    assert client.max_tokens == 123
    assert client.timeout_seconds == 9


def test_service_start_and_stop_control_reaper(service: TakeoffService) -> None:
    service.start()
    try:
        assert service.reaper.running
    finally:
        service.stop()
    assert not service.reaper.running
