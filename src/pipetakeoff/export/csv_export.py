"""CSV encoding of a material takeoff."""
from __future__ import annotations

import csv
import io
import logging
from decimal import Decimal
from typing import Sequence

from pipetakeoff.models import MaterialRecord

from .grouping import ordered_materials

LOGGER = logging.getLogger(__name__)

COLUMNS: tuple[str, ...] = (
    "Category",
    "Description",
    "Size",
    "Material",
    "Quantity",
    "Unit",
    "Confidence",
    "Notes",
)


def format_quantity(value: Decimal) -> str:
    """Render a quantity in plain notation (``100`` rather than ``1E+2``)."""

    return format(value, "f")


def export_csv(records: Sequence[MaterialRecord]) -> bytes:
    """Encode ``records`` as UTF-8 CSV in canonical category order.

    Every field is quoted and embedded quotes are doubled. No subtotal rows.
    """

    LOGGER.info("Exporting %d materials to CSV", len(records))
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(COLUMNS)
    for record in ordered_materials(records):
        writer.writerow(
            (
                record.category,
                record.description,
                record.size,
                record.material,
                format_quantity(record.quantity),
                record.unit,
                record.confidence,
                record.notes or "",
            )
        )
    return buffer.getvalue().encode("utf-8")


__all__ = ["COLUMNS", "export_csv", "format_quantity"]
