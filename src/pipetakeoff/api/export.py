"""Export endpoints returning CSV or Excel attachments."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipetakeoff.models import MaterialRecord
from pipetakeoff.services.takeoff import TakeoffService, get_takeoff_service

router = APIRouter(prefix="/api/export", tags=["export"])

CSV_MEDIA_TYPE = "text/csv"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportRequest(BaseModel):
    """Request body listing the materials to export."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    materials: list[MaterialRecord] = Field(default_factory=list)


def _require_materials(request: ExportRequest) -> list[MaterialRecord]:
    if not request.materials:
        raise HTTPException(status_code=400, detail="No materials to export")
    return request.materials


def _attachment(content: bytes, media_type: str, extension: str) -> Response:
    file_name = f"takeoff-{datetime.now():%Y%m%d-%H%M%S}.{extension}"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.post("/csv", response_class=Response)
def export_csv(
    request: ExportRequest,
    service: TakeoffService = Depends(get_takeoff_service),
) -> Response:
    """Return a CSV file with all materials grouped by category."""

    return _attachment(service.export_csv(_require_materials(request)), CSV_MEDIA_TYPE, "csv")


@router.post("/excel", response_class=Response)
def export_excel(
    request: ExportRequest,
    service: TakeoffService = Depends(get_takeoff_service),
) -> Response:
    """Return an Excel file with subtotals and colour-coded confidence levels."""

    return _attachment(service.export_excel(_require_materials(request)), XLSX_MEDIA_TYPE, "xlsx")
