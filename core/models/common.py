from __future__ import annotations
from typing import Literal

DiscountType = Literal["percentage", "fixed"]

def format_money(amount: float, symbol: str = "₹") -> str:
    try:
        v = float(amount)
    except (TypeError, ValueError):
        return f"{symbol}0.00"
    sign = "-" if v < 0 else ""
    return f"{sign}{symbol}{abs(v):,.2f}"
