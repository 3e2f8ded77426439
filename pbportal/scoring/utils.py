"""
Decimal Utilities
pbportal/scoring/utils.py

Provides precision-safe decimal math for scoring calculations.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List


def as_decimal(value: float) -> Decimal:
    """Convert a number to Decimal via its shortest repr, without rounding."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_decimal(value: float, places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision."""
    return as_decimal(value).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def clamp(
    value: Decimal,
    min_val: Decimal = Decimal("0"),
    max_val: Decimal = Decimal("100"),
) -> Decimal:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def mean(values: List[Decimal]) -> Decimal:
    """
    Arithmetic mean.

    Returns Decimal("0") for an empty list.
    """
    if not values:
        return Decimal("0")
    return sum(values, Decimal("0")) / Decimal(len(values))
