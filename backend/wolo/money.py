from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

CENT = Decimal("0.01")


def quantize(amount) -> Decimal:
    """Round to cents. None and blanks are zero."""
    if amount is None or amount == "":
        return Decimal("0.00")
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(amount) -> Optional[float]:
    """JSON-friendly rendering of a monetary value (2 decimal places)."""
    if amount is None:
        return None
    return float(quantize(amount))
