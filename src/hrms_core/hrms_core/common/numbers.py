from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_CENTS = Decimal("0.01")


def round2(value: float | Decimal | int) -> float:
    """Round half-up to 2 decimals.

    Goes through repr() so 4838.705 rounds to 4838.71, not 4838.70.
    """
    return float(Decimal(repr(float(value))).quantize(_CENTS, rounding=ROUND_HALF_UP))
