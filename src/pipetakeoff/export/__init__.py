"""Aggregation and export of material takeoffs."""

from .csv_export import COLUMNS, export_csv, format_quantity
from .excel_export import SHEET_TITLE, export_workbook
from .grouping import CategoryGroup, group_materials, ordered_materials, sum_quantities

__all__ = [
    "COLUMNS",
    "CategoryGroup",
    "SHEET_TITLE",
    "export_csv",
    "export_workbook",
    "format_quantity",
    "group_materials",
    "ordered_materials",
    "sum_quantities",
]
