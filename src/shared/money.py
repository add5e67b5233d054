"""Fixed-point helpers for currency amounts.

Amounts are persisted as floats but every calculation goes through
``Decimal`` and is quantized to two places before it is stored or compared.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Convert a float/int/str amount to a 2-place Decimal."""
    if isinstance(value, Decimal):
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    return max(lower, min(value, upper))


def as_float(value: Decimal) -> float:
    return float(to_decimal(value))
