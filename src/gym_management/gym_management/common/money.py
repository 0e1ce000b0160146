from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[Decimal, int, float, str]

VND = Decimal("1")


def to_money(value: Number) -> Decimal:
    """Normalize an amount to whole VND (VND has no minor unit)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(VND, rounding=ROUND_HALF_UP)


def format_vnd(amount: Number) -> str:
    """1500000 -> '1,500,000'."""
    return f"{to_money(amount):,.0f}"
