"""Turn uploaded PDF bytes into a populated page session."""
from __future__ import annotations

import logging
import time
from contextlib import closing
from typing import List, Optional

from pipetakeoff.errors import IngestionFailure
from pipetakeoff.models import UploadResult
from pipetakeoff.sessions import SessionStore
from pipetakeoff.telemetry import emit_ingest_event

from .rendering import PageRenderer, PyMuPdfRenderer, encode_png

LOGGER = logging.getLogger(__name__)


class DocumentIngestor:
    """Render every page of a document and publish them as one session.

    The session is created only after the final page has been encoded, so a
    failure or an abandoned request never leaves a partially populated session.
    """

    def __init__(self, store: SessionStore, renderer: Optional[PageRenderer] = None) -> None:
        self.store = store
        self.renderer = renderer or PyMuPdfRenderer()

    def ingest(self, document_bytes: bytes, file_name: str) -> UploadResult:
        LOGGER.info("Processing PDF %s (%d bytes)", file_name, len(document_bytes))
        emit_ingest_event("ingest.file.start", file_name=file_name, size_bytes=len(document_bytes))
        started = time.perf_counter()

        try:
            pages = self._render_pages(document_bytes, file_name)
        except IngestionFailure as error:
            emit_ingest_event(
                "ingest.file.error",
                file_name=file_name,
                size_bytes=len(document_bytes),
                duration_ms=(time.perf_counter() - started) * 1000.0,
                error=error,
            )
            raise

        session_id = self.store.create(pages, file_name)
        emit_ingest_event(
            "ingest.file.complete",
            file_name=file_name,
            session_id=session_id,
            size_bytes=len(document_bytes),
            duration_ms=(time.perf_counter() - started) * 1000.0,
            pages=len(pages),
        )
        return UploadResult(session_id=session_id, file_name=file_name, page_count=len(pages))

    def _render_pages(self, document_bytes: bytes, file_name: str) -> List[bytes]:
        pages: List[bytes] = []
        try:
            with closing(self.renderer.iter_pages(document_bytes)) as rendered_pages:
                for rendered in rendered_pages:
                    pages.append(encode_png(rendered))
                    LOGGER.debug("Processed page %d: %sx%s", len(pages), rendered.width, rendered.height)
        except Exception as error:
            LOGGER.exception("Failed to render page %d of %s", len(pages) + 1, file_name)
            raise IngestionFailure(
                f"Failed to render page {len(pages) + 1} of {file_name}: {error}", cause=error
            ) from error

        if not pages:
            raise IngestionFailure(f"{file_name} contains no pages")
        LOGGER.info("PDF %s has %d pages", file_name, len(pages))
        return pages


__all__ = ["DocumentIngestor"]
