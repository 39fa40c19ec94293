"""Upload endpoints: ingest a PDF and serve its rendered pages."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from pipetakeoff.errors import IngestionFailure, PageOutOfRange, SessionNotFound
from pipetakeoff.models import UploadResult
from pipetakeoff.services.takeoff import TakeoffService, get_takeoff_service

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


def _size_limit_detail(limit: int) -> str:
    return f"File size exceeds {limit / (1024 * 1024):g}MB limit"


@router.post("", response_model=UploadResult)
async def upload_pdf(
    file: UploadFile = File(...),
    service: TakeoffService = Depends(get_takeoff_service),
) -> UploadResult:
    """Convert the uploaded PDF's pages to images and open a session for them."""

    file_name = file.filename or ""
    if not file_name.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    limit = service.settings.max_upload_bytes
    if file.size is not None and file.size > limit:
        raise HTTPException(status_code=400, detail=_size_limit_detail(limit))

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="No file provided")
    if len(contents) > limit:
        raise HTTPException(status_code=400, detail=_size_limit_detail(limit))

    try:
        return await run_in_threadpool(service.upload, contents, file_name)
    except IngestionFailure as exc:
        LOGGER.warning("Rejected upload %s: %s", file_name, exc)
        raise HTTPException(status_code=422, detail=f"Failed to process PDF: {exc}") from exc


@router.get(
    "/{session_id}/page/{page_number}",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_page_image(
    session_id: str,
    page_number: int,
    service: TakeoffService = Depends(get_takeoff_service),
) -> Response:
    """Return one rendered page of a session as a PNG image."""

    try:
        image = service.page_image(session_id, page_number)
    except (SessionNotFound, PageOutOfRange) as exc:
        raise HTTPException(status_code=404, detail="Session or page not found") from exc
    return Response(
        content=image,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="page-{page_number}.png"'},
    )
