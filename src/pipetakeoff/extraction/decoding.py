"""Decode-or-default helpers for loosely typed model output.

Each helper reads one field from a mapping and either returns a value of the
expected type or the supplied default. They never raise for bad field values,
which keeps a single malformed field from discarding the rest of a record.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, TypeVar

from pipetakeoff.models import MAX_QUANTITY

T = TypeVar("T")
D = TypeVar("D")

_MISSING = object()


def decode_or_default(
    source: Mapping[str, Any],
    key: str,
    decoder: Callable[[Any], T],
    default: D,
) -> T | D:
    """Apply ``decoder`` to ``source[key]``, falling back to ``default``.

    Missing keys, JSON ``null`` and any value the decoder rejects with
    ``TypeError``, ``ValueError`` or ``ArithmeticError`` all yield ``default``.
    """

    value = source.get(key, _MISSING)
    if value is _MISSING or value is None:
        return default
    try:
        return decoder(value)
    except (TypeError, ValueError, ArithmeticError):
        return default


def as_text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def as_decimal(value: Any) -> Decimal:
    """Accept JSON numbers or numeric strings such as ``"150"`` and ``"1,200.5"``."""

    if isinstance(value, bool):
        raise TypeError("booleans are not quantities")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(repr(value))
    elif isinstance(value, str):
        number = Decimal(value.strip().replace(",", ""))
    else:
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if not number.is_finite():
        raise ValueError(f"non-finite quantity: {value!r}")
    return number


def as_quantity(value: Any) -> Decimal:
    number = as_decimal(value)
    if number < 0:
        raise ValueError(f"negative quantity: {value!r}")
    if number > MAX_QUANTITY:
        raise ValueError(f"quantity above {MAX_QUANTITY}")
    return number


def text_field(source: Mapping[str, Any], key: str, default: str) -> str:
    return decode_or_default(source, key, as_text, default)


def optional_text_field(source: Mapping[str, Any], key: str) -> Optional[str]:
    return decode_or_default(source, key, as_text, None)


def quantity_field(source: Mapping[str, Any], key: str, default: Decimal = Decimal(0)) -> Decimal:
    return decode_or_default(source, key, as_quantity, default)


__all__ = [
    "as_decimal",
    "as_quantity",
    "as_text",
    "decode_or_default",
    "optional_text_field",
    "quantity_field",
    "text_field",
]
