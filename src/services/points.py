"""Loyalty points calculation."""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from utils.error_handling import InvalidInputError

Amount = Union[Decimal, int, float, str]

# purchases.purchase_value is NUMERIC(12, 2).
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")


def to_amount(value: Amount, field: str = "purchase_value") -> Decimal:
    """Convert a user-supplied amount to a finite, non-negative Decimal in cents."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"{field} must be a number") from None
    if not amount.is_finite():
        raise InvalidInputError(f"{field} must be a finite number")
    if amount < 0:
        raise InvalidInputError(f"{field} must not be negative")
    if amount > MAX_AMOUNT:
        raise InvalidInputError(f"{field} must not exceed {MAX_AMOUNT}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_points(purchase_value: Amount, rate: int) -> int:
    """Points earned for a purchase: floor(purchase_value * rate)."""
    amount = to_amount(purchase_value)
    if isinstance(rate, bool) or not isinstance(rate, int):
        raise InvalidInputError("rate must be an integer")
    if rate < 0:
        raise InvalidInputError("rate must not be negative")
    return int(math.floor(amount * rate))
