"""Convert raw vision model output into an :class:`ExtractionOutcome`."""
from __future__ import annotations

import json
import logging
import re
from decimal import Decimal
from typing import Any, Mapping, Optional

from pipetakeoff.errors import MalformedExtractionPayload
from pipetakeoff.models import (
    DEFAULT_CATEGORY,
    DEFAULT_CONFIDENCE,
    DEFAULT_UNIT,
    ExtractionOutcome,
    MaterialRecord,
)

from .decoding import optional_text_field, quantity_field, text_field

LOGGER = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*\n?(?P<body>.*?)\n?\s*```$", re.DOTALL)


def parse_extraction_response(text: Optional[str]) -> ExtractionOutcome:
    """Parse model output into materials and drawing notes.

    Malformed output never raises: an undecodable payload yields an empty
    outcome and a malformed entry in ``materials`` is skipped on its own,
    leaving the entries around it intact. Both cases are logged.
    """

    try:
        payload = _load_payload(text)
    except MalformedExtractionPayload as error:
        LOGGER.warning("Discarding malformed extraction payload: %s", error)
        return ExtractionOutcome()

    materials: list[MaterialRecord] = []
    entries = payload.get("materials")
    if isinstance(entries, list):
        for index, entry in enumerate(entries):
            try:
                materials.append(decode_material(entry))
            except Exception as error:
                LOGGER.warning("Failed to parse material item %d: %s", index, error)
    elif entries is not None:
        LOGGER.warning("Ignoring 'materials' of type %s; expected an array", type(entries).__name__)

    notes = payload.get("drawingNotes")
    drawing_notes = notes if isinstance(notes, str) else None

    LOGGER.info("Parsed %d materials from response", len(materials))
    return ExtractionOutcome(materials=materials, drawing_notes=drawing_notes)


def decode_material(entry: Any) -> MaterialRecord:
    """Build a record from one ``materials`` element using per-field defaults."""

    if not isinstance(entry, Mapping):
        raise MalformedExtractionPayload(f"material entry is {type(entry).__name__}, not an object")

    return MaterialRecord(
        category=text_field(entry, "category", DEFAULT_CATEGORY),
        description=text_field(entry, "description", ""),
        size=text_field(entry, "size", ""),
        material=text_field(entry, "material", ""),
        quantity=quantity_field(entry, "quantity", Decimal(0)),
        unit=text_field(entry, "unit", DEFAULT_UNIT),
        confidence=text_field(entry, "confidence", DEFAULT_CONFIDENCE),
        notes=optional_text_field(entry, "notes"),
        is_manual_entry=False,
    )


def _load_payload(text: Optional[str]) -> Mapping[str, Any]:
    if text is None or not text.strip():
        raise MalformedExtractionPayload("empty response content")

    content = _strip_code_fence(text.strip())
    try:
        payload = json.loads(content, parse_float=Decimal)
    except (ValueError, RecursionError) as error:
        raise MalformedExtractionPayload(f"invalid JSON: {error}") from error

    if not isinstance(payload, dict):
        raise MalformedExtractionPayload(f"top-level JSON is {type(payload).__name__}, not an object")
    return payload


def _strip_code_fence(content: str) -> str:
    match = _CODE_FENCE_RE.match(content)
    return match.group("body").strip() if match else content


__all__ = ["decode_material", "parse_extraction_response"]
