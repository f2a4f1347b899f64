"""Decimal helpers for peso amounts (2 decimal places)"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Union[int, float, str, Decimal, None]) -> Decimal:
    """Convert a numeric value to Decimal without rounding; None counts as zero"""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # Go through str so floats keep their printed value
    return Decimal(str(value))


def round_money(value: Union[int, float, str, Decimal, None]) -> Decimal:
    """Round to centavos, half-up. Call at calculation boundaries only."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Union[int, float, str, Decimal, None]]) -> Decimal:
    return round_money(sum((to_decimal(v) for v in values), Decimal("0")))
