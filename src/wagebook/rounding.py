from __future__ import annotations

from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any

ROUNDING_UNIT = 1000

# Largest decimal exponent accepted from input; anything from 10**19 up is unusable.
MAX_EXPONENT = 18

ZERO = Decimal(0)
_UNIT = Decimal(ROUNDING_UNIT)


def to_amount(value: Any) -> Decimal:
    """Coerce a loosely typed monetary or quantity value to ``Decimal``.

    Missing, non-numeric, non-finite and absurdly large values become zero.
    Floats go through ``str`` so ``0.3`` stays ``0.3`` instead of its binary
    approximation.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, (float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not amount.is_finite() or (amount and amount.adjusted() > MAX_EXPONENT):
        return ZERO
    return amount


def round_up(amount: Any) -> int:
    """Round a money amount up to the next multiple of ``ROUNDING_UNIT``.

    Zero, negative and unusable inputs round to 0.
    """
    value = to_amount(amount)
    if value <= 0:
        return 0
    if value <= _UNIT:
        return ROUNDING_UNIT
    units = (value / _UNIT).to_integral_value(rounding=ROUND_CEILING)
    return int(units) * ROUNDING_UNIT
