"""Styled spreadsheet encoding of a material takeoff."""
from __future__ import annotations

import io
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet
from openpyxl.writer.excel import ExcelWriter

from pipetakeoff.models import MaterialRecord

from .csv_export import COLUMNS
from .grouping import group_materials, sum_quantities

LOGGER = logging.getLogger(__name__)

SHEET_TITLE = "Materials Takeoff"
LABEL_COLUMN = 4
QUANTITY_COLUMN = 5
UNIT_COLUMN = 6
CONFIDENCE_COLUMN = 7
MAX_COLUMN_WIDTH = 60

# Fixed stamps for document properties and archive entries; equal input gives equal bytes.
FIXED_TIMESTAMP = datetime(1980, 1, 1)
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def _solid(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


HEADER_FONT = Font(bold=True)
HEADER_FILL = _solid("ADD8E6")
TOTAL_FONT = Font(bold=True)
MANUAL_ENTRY_FONT = Font(italic=True)
CONFIDENCE_FILLS = {
    "High": _solid("90EE90"),
    "Medium": _solid("FFFFE0"),
    "Low": _solid("F08080"),
}


def export_workbook(records: Sequence[MaterialRecord]) -> bytes:
    """Encode ``records`` as an ``.xlsx`` workbook.

    Canonical categories are each followed by a subtotal row and a blank row;
    records of any other category are listed afterwards without a subtotal.
    A grand total over every record closes the sheet.
    """

    LOGGER.info("Exporting %d materials to Excel", len(records))
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    for column, header in enumerate(COLUMNS, start=1):
        cell = sheet.cell(row=1, column=column, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")

    row = 2
    for group in group_materials(records):
        for record in group.records:
            _write_record(sheet, row, record)
            row += 1
        if group.canonical:
            _write_total(sheet, row, f"{group.category} Total:", group.total_quantity, group.unit)
            row += 2

    row += 1
    _write_total(sheet, row, "GRAND TOTAL:", sum_quantities(records), None)

    _fit_columns(sheet)

    return _save_reproducibly(workbook)


def _write_record(sheet: Worksheet, row: int, record: MaterialRecord) -> None:
    values = (
        record.category,
        record.description,
        record.size,
        record.material,
        record.quantity,
        record.unit,
        record.confidence,
        record.notes or "",
    )
    for column, value in enumerate(values, start=1):
        cell = sheet.cell(row=row, column=column, value=value)
        if record.is_manual_entry:
            cell.font = MANUAL_ENTRY_FONT

    fill = CONFIDENCE_FILLS.get(record.confidence)
    if fill is not None:
        sheet.cell(row=row, column=CONFIDENCE_COLUMN).fill = fill


def _write_total(sheet: Worksheet, row: int, label: str, total: Decimal, unit: Optional[str]) -> None:
    label_cell = sheet.cell(row=row, column=LABEL_COLUMN, value=label)
    label_cell.font = TOTAL_FONT
    label_cell.alignment = Alignment(horizontal="right")
    total_cell = sheet.cell(row=row, column=QUANTITY_COLUMN, value=total)
    total_cell.font = TOTAL_FONT
    if unit is not None:
        sheet.cell(row=row, column=UNIT_COLUMN, value=unit)


def _save_reproducibly(workbook: Workbook) -> bytes:
    workbook.properties.created = FIXED_TIMESTAMP
    workbook.properties.modified = FIXED_TIMESTAMP

    staged = io.BytesIO()
    ExcelWriter(workbook, ZipFile(staged, "w", ZIP_DEFLATED, allowZip64=True)).save()

    packed = io.BytesIO()
    with ZipFile(staged) as source, ZipFile(packed, "w", ZIP_DEFLATED, allowZip64=True) as target:
        for info in source.infolist():
            entry = ZipInfo(info.filename, date_time=ZIP_TIMESTAMP)
            entry.compress_type = ZIP_DEFLATED
            entry.external_attr = info.external_attr
            target.writestr(entry, source.read(info.filename))
    return packed.getvalue()


def _fit_columns(sheet: Worksheet) -> None:
    widths: dict[int, int] = {}
    for row in sheet.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            length = len(str(cell.value))
            widths[cell.column] = max(widths.get(cell.column, 0), length)
    for column, width in widths.items():
        sheet.column_dimensions[get_column_letter(column)].width = min(width + 2, MAX_COLUMN_WIDTH)


__all__ = ["CONFIDENCE_FILLS", "FIXED_TIMESTAMP", "SHEET_TITLE", "ZIP_TIMESTAMP", "export_workbook"]
