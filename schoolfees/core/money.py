"""Decimal helpers for ledger amounts."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(val) -> Decimal:
    if val is None:
        return ZERO
    return val if isinstance(val, Decimal) else Decimal(str(val))


def round_money(val, rounding: str = ROUND_HALF_UP) -> Decimal:
    return to_decimal(val).quantize(CENT, rounding=rounding)
