"""Canonical category grouping shared by every export format."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Sequence

from pipetakeoff.models import CATEGORIES, MaterialRecord


@dataclass(frozen=True, slots=True)
class CategoryGroup:
    """Records of one canonical category, or the trailing bucket of all others."""

    category: str
    records: tuple[MaterialRecord, ...]
    canonical: bool

    @property
    def total_quantity(self) -> Decimal:
        return sum_quantities(self.records)

    @property
    def unit(self) -> str:
        return self.records[0].unit if self.records else ""


def sum_quantities(records: Iterable[MaterialRecord]) -> Decimal:
    return sum((record.quantity for record in records), Decimal(0))


def group_materials(records: Sequence[MaterialRecord]) -> List[CategoryGroup]:
    """Group records by the fixed category order.

    Pipe, Fitting, Valve, Equipment and Specialty come first, each keeping the
    input order of its records and omitted when empty. Records of any other
    category, including ``"Unknown"``, follow in a single group in input order.
    """

    groups: List[CategoryGroup] = []
    for category in CATEGORIES:
        members = tuple(record for record in records if record.category == category)
        if members:
            groups.append(CategoryGroup(category=category, records=members, canonical=True))

    others = tuple(record for record in records if record.category not in CATEGORIES)
    if others:
        groups.append(CategoryGroup(category="Other", records=others, canonical=False))
    return groups


def ordered_materials(records: Sequence[MaterialRecord]) -> List[MaterialRecord]:
    """Flatten :func:`group_materials` back into a single ordered list."""

    return [record for group in group_materials(records) for record in group.records]


__all__ = ["CategoryGroup", "group_materials", "ordered_materials", "sum_quantities"]
