"""Pydantic models describing material records and pipeline results."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

CATEGORIES: tuple[str, ...] = ("Pipe", "Fitting", "Valve", "Equipment", "Specialty")
CONFIDENCE_LEVELS: tuple[str, ...] = ("High", "Medium", "Low")

DEFAULT_CATEGORY = "Unknown"
DEFAULT_UNIT = "EA"
DEFAULT_CONFIDENCE = "Medium"

MAX_QUANTITY = Decimal("1000000000000")
QUANTITY_STEP = Decimal("0.000001")


def _limit_precision(value: Decimal) -> Decimal:
    if value.as_tuple().exponent < QUANTITY_STEP.as_tuple().exponent:
        return value.quantize(QUANTITY_STEP)
    return value


def _serialize_quantity(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


Quantity = Annotated[
    Decimal,
    Field(ge=0, le=MAX_QUANTITY),
    AfterValidator(_limit_precision),
    PlainSerializer(_serialize_quantity, return_type=Any, when_used="json"),
]


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MaterialRecord(_CamelModel):
    """One material line item, either extracted from a drawing or entered by hand."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=_new_id)
    category: str = Field(default=DEFAULT_CATEGORY, description="Pipe, Fitting, Valve, Equipment, Specialty or free text")
    description: str = ""
    size: str = ""
    material: str = ""
    quantity: Quantity = Decimal(0)
    unit: str = Field(default=DEFAULT_UNIT, description="LF for linear pipe, EA for counted items")
    confidence: str = Field(default=DEFAULT_CONFIDENCE, description="High, Medium or Low")
    notes: Optional[str] = None
    is_manual_entry: bool = False

    @classmethod
    def manual(cls, **fields: Any) -> "MaterialRecord":
        """Create a record entered by a user rather than extracted by the model."""

        fields.pop("is_manual_entry", None)
        return cls(**fields, is_manual_entry=True)


class ExtractionOutcome(_CamelModel):
    """Materials and notes parsed from a single analysis call."""

    materials: list[MaterialRecord] = Field(default_factory=list)
    drawing_notes: Optional[str] = None
    analyzed_at: datetime = Field(default_factory=_utcnow)


class UploadResult(_CamelModel):
    """Summary returned once a document has been ingested into a session."""

    session_id: str
    file_name: str
    page_count: int


__all__ = [
    "CATEGORIES",
    "CONFIDENCE_LEVELS",
    "DEFAULT_CATEGORY",
    "DEFAULT_CONFIDENCE",
    "DEFAULT_UNIT",
    "MAX_QUANTITY",
    "QUANTITY_STEP",
    "ExtractionOutcome",
    "MaterialRecord",
    "UploadResult",
]
