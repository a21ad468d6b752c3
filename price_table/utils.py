"""Utility functions for the price table calculator.

This module provides helpers for turning user input into ``Decimal`` values
and for validating the numbers handed to the engine. Strings coming from a
command line or a form are cleaned of thousands separators and may carry a
``k``/``m`` suffix.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, getcontext
from typing import Union

from .exceptions import InvalidInput

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[Decimal, int, float, str]

_SUFFIXES = {"k": Decimal(1_000), "m": Decimal(1_000_000)}


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace and accepts a
    trailing ``k`` or ``m`` (``"10k"`` is 10 000). It raises ``ValueError``
    if conversion fails or the result is not a finite number.
    """
    cleaned = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if cleaned[-1:] in _SUFFIXES:
        factor = _SUFFIXES[cleaned[-1]]
        cleaned = cleaned[:-1]
    try:
        result = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result * factor


def percent_to_fraction(value: Number) -> Decimal:
    """Convert a percentage (``2`` or ``"2%"``) into a fraction (``0.02``)."""
    if isinstance(value, str):
        value = value.strip()
        if value.endswith("%"):
            value = value[:-1]
    return to_decimal(value, "rate") / Decimal(100)


def to_decimal(value: Number, field: str) -> Decimal:
    """Coerce ``value`` into a finite ``Decimal``.

    Floats go through ``str`` so that ``0.02`` becomes ``Decimal("0.02")``
    rather than its binary expansion.

    Raises
    ------
    InvalidInput
        If the value is a boolean, cannot be parsed, or is NaN/infinite.
    """
    if isinstance(value, bool):
        raise InvalidInput(field, value, "expected a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = decimal_from_str(value)
        except ValueError as exc:
            raise InvalidInput(field, value, "not a number") from exc
    else:
        raise InvalidInput(field, value, "expected a number")
    if not result.is_finite():
        raise InvalidInput(field, value, "must be finite")
    return result


def to_period_count(value: Number, field: str = "periods") -> int:
    """Coerce ``value`` into a positive whole number of periods."""
    number = to_decimal(value, field)
    if number != number.to_integral_value():
        raise InvalidInput(field, value, "must be a whole number")
    if number <= 0:
        raise InvalidInput(field, value, "must be positive")
    return int(number)
