# core/money.py
from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

CURRENCY_SYMBOL = "£"
MAX_AMOUNT = Decimal("10000000")


def format_minor(amount: Optional[int], symbol: str = CURRENCY_SYMBOL) -> str:
    """1250 -> '£12.50'. Amounts on the wire are minor units."""
    if amount is None:
        return f"{symbol}0.00"
    value = Decimal(int(amount)) / 100
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):.2f}"


def parse_amount(raw: Any) -> Decimal:
    """
    Parse a form amount in major units ("12.5", "12.50", 12).
    Must be positive with at most two decimals.
    """
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw if raw is not None else "").strip().replace(",", "")
        if text.startswith(CURRENCY_SYMBOL):
            text = text[len(CURRENCY_SYMBOL):].strip()
        if not text:
            raise ValueError("Amount is required")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise ValueError("Amount must be a number")
    if not value.is_finite():
        raise ValueError("Amount must be a number")
    if value <= 0:
        raise ValueError("Amount must be greater than zero")
    if value > MAX_AMOUNT:
        raise ValueError(f"Amount must be at most {format_minor(to_minor(MAX_AMOUNT))}")
    if value.as_tuple().exponent < -2:
        raise ValueError("Amount can have at most two decimals")
    return value


def to_minor(value: Decimal) -> int:
    return int((value * 100).to_integral_value())


def initials(name: Optional[str]) -> str:
    parts = [p for p in (name or "").split() if p]
    return "".join(p[0] for p in parts).upper()[:2]
