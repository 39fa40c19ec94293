"""Analysis endpoint: extract materials from one page with the vision model."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipetakeoff.errors import (
    ModelAuthenticationError,
    ModelCallFailure,
    ModelQuotaError,
    PageOutOfRange,
    SessionNotFound,
)
from pipetakeoff.models import ExtractionOutcome
from pipetakeoff.services.takeoff import TakeoffService, get_takeoff_service

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


class AnalyzeRequest(BaseModel):
    """Request body accepted by the analysis endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str = ""
    page_number: int = 0
    api_key: str = Field("", description="Credential forwarded to the model provider.")
    custom_prompt: Optional[str] = Field(None, description="Replaces the default extraction prompt.")


@router.post("", response_model=ExtractionOutcome)
def analyze_drawing(
    request: AnalyzeRequest,
    service: TakeoffService = Depends(get_takeoff_service),
) -> ExtractionOutcome:
    """Send a page image to the vision model and return the identified materials."""

    if not request.api_key:
        raise HTTPException(status_code=400, detail="API key is required")
    if not request.session_id:
        raise HTTPException(status_code=400, detail="Session ID is required")
    if request.page_number < 1:
        raise HTTPException(status_code=400, detail="Page number must be at least 1")

    try:
        return service.analyze(
            request.session_id,
            request.page_number,
            request.api_key,
            request.custom_prompt,
        )
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="Session not found or expired") from exc
    except PageOutOfRange as exc:
        raise HTTPException(status_code=400, detail="Invalid page number") from exc
    except ModelAuthenticationError as exc:
        raise HTTPException(status_code=401, detail=f"OpenAI API error: {exc}") from exc
    except ModelQuotaError as exc:
        raise HTTPException(status_code=429, detail=f"OpenAI API error: {exc}") from exc
    except ModelCallFailure as exc:
        LOGGER.error("OpenAI API request failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"OpenAI API error: {exc}") from exc
