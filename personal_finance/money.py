"""
Monetary amount helpers. NEVER uses float arithmetic for balances.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Any

from .errors import InvalidAmount

getcontext().prec = 28

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')


def quantize(amount: Decimal) -> Decimal:
    """Round to two fraction digits"""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """
    Convert a caller-supplied amount to a quantized Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal('0.10'), not its binary
    expansion. Booleans, non-numeric strings, NaN and infinities raise
    InvalidAmount.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(f"Amount must be a number, got {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Amount must be a number, got {value!r}")
    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {value!r}")
    return quantize(amount)


def parse_positive_amount(value: Any) -> Decimal:
    """Parse an amount that must be strictly positive"""
    amount = to_decimal(value)
    if amount <= ZERO:
        raise InvalidAmount(f"Amount must be positive, got {amount}")
    return amount


def parse_balance(value: Any) -> Decimal:
    """Parse a balance that must not be negative"""
    amount = to_decimal(value)
    if amount < ZERO:
        raise InvalidAmount(f"Balance must not be negative, got {amount}")
    return amount
