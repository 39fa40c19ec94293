from __future__ import annotations

import logging
import time
import uuid
from functools import lru_cache
from typing import Optional, Sequence

from pipetakeoff.config import Settings, load_settings
from pipetakeoff.errors import ModelCallFailure
from pipetakeoff.export import export_csv, export_workbook
from pipetakeoff.extraction import parse_extraction_response, resolve_prompt
from pipetakeoff.ingest import DocumentIngestor, PyMuPdfRenderer
from pipetakeoff.llm import OpenAIVisionClient, VisionModelClient
from pipetakeoff.models import ExtractionOutcome, MaterialRecord, UploadResult
from pipetakeoff.providers import MockVisionClient
from pipetakeoff.sessions import SessionReaper, SessionStore
from pipetakeoff.telemetry import (
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    traced_duration,
)

LOGGER = logging.getLogger(__name__)


def build_vision_client(settings: Settings) -> VisionModelClient:
    """Select the model backend named by ``settings.llm_provider``."""

    if settings.llm_provider == "mock":
        LOGGER.warning("LLM_PROVIDER=mock; analysis returns canned materials")
        return MockVisionClient()
    if settings.llm_provider != "openai":
        LOGGER.warning("Unknown LLM_PROVIDER %r; using openai", settings.llm_provider)
    return OpenAIVisionClient(
        base_url=settings.openai_base_url,
        max_tokens=settings.openai_max_tokens,
        timeout_seconds=settings.openai_timeout_seconds,
    )


class TakeoffService:
    """High level orchestration of upload, page viewing, analysis and export."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        store: SessionStore | None = None,
        ingestor: DocumentIngestor | None = None,
        vision_client: VisionModelClient | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        if store is None:
            store = ingestor.store if ingestor is not None else SessionStore(
                ttl_seconds=self.settings.session_ttl_seconds
            )
        self.store = store
        self.ingestor = ingestor or DocumentIngestor(
            self.store, PyMuPdfRenderer(self.settings.render_max_dimension)
        )
        self.vision_client = vision_client or build_vision_client(self.settings)
        self.reaper = SessionReaper(self.store, interval_seconds=self.settings.sweep_interval_seconds)

    def start(self) -> None:
        self.reaper.start()

    def stop(self) -> None:
        self.reaper.stop()

    def upload(self, document_bytes: bytes, file_name: str) -> UploadResult:
        return self.ingestor.ingest(document_bytes, file_name)

    def page_image(self, session_id: str, page_number: int) -> bytes:
        return self.store.get_page(session_id, page_number)

    def analyze(
        self,
        session_id: str,
        page_number: int,
        api_key: str,
        custom_prompt: Optional[str] = None,
    ) -> ExtractionOutcome:
        LOGGER.info("Starting analysis for session %s, page %s", session_id, page_number)
        image_base64 = self.store.get_page_base64(session_id, page_number)
        prompt = resolve_prompt(custom_prompt)
        model = self.settings.openai_model
        req_id = uuid.uuid4().hex

        emit_inference_request(
            req_id=req_id,
            session_id=session_id,
            page_number=page_number,
            model=model,
            prompt_preview=prompt,
            custom_prompt=prompt is custom_prompt,
            image_bytes=len(image_base64),
        )
        started = time.perf_counter()
        try:
            raw_response = self.vision_client.invoke(image_base64, prompt, model, api_key)
        except ModelCallFailure as error:
            emit_exception(module=f"{__name__}.llm", error=error, req_id=req_id, session_id=session_id)
            raise

        outcome = parse_extraction_response(raw_response)
        emit_inference_result(
            req_id=req_id,
            session_id=session_id,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            model=model,
            response_chars=len(raw_response),
            materials=len(outcome.materials),
            has_notes=outcome.drawing_notes is not None,
        )
        LOGGER.info("Analysis complete: %d materials found", len(outcome.materials))
        return outcome

    def export_csv(self, records: Sequence[MaterialRecord]) -> bytes:
        with traced_duration("export.csv", logger=LOGGER, records=len(records)):
            return export_csv(records)

    def export_excel(self, records: Sequence[MaterialRecord]) -> bytes:
        with traced_duration("export.excel", logger=LOGGER, records=len(records)):
            return export_workbook(records)


@lru_cache(maxsize=1)
def get_takeoff_service() -> TakeoffService:
    """FastAPI dependency returning the shared :class:`TakeoffService` instance."""

    return TakeoffService()
