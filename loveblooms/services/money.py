# loveblooms/services/money.py
"""
Money helpers. Everything below the HTTP layer works in integer pence;
pounds only appear at the edges (JSON payloads, Firestore documents, labels).
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Amount = Union[int, float, str, Decimal]

_PENNY = Decimal("0.01")


def to_pence(value: Amount) -> int:
    """12.5 -> 1250, "4.99" -> 499. Floats go through str() to avoid binary drift."""
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"invalid amount: {value!r}")
    if not d.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return int((d.quantize(_PENNY, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def to_pounds(pence: int) -> float:
    return float(Decimal(int(pence)) / 100)


def percent_of(pence: int, percent: Amount) -> int:
    """Whole pence, half-up: percent_of(1999, 15) -> 300."""
    raw = Decimal(int(pence)) * Decimal(str(percent)) / 100
    return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_price(pence: int, symbol: str = "£") -> str:
    sign = "-" if pence < 0 else ""
    return f"{sign}{symbol}{abs(int(pence)) / 100:,.2f}"
