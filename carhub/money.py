"""
Money parsing shared by every aggregation path.

Stored amounts arrive as ``Decimal`` from the database, as strings from API
payloads and old exports, or as ``None``. ``parse_money`` turns any of them
into a ``Decimal`` and never raises: anything that is not a plain
non-negative decimal with at most two fractional digits counts as zero.
"""
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

MONEY_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def is_money(value: Any) -> bool:
    """True when ``value`` is a well-formed, finite, non-negative amount."""
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite() and value >= 0
    if isinstance(value, (int, float)):
        return math.isfinite(value) and value >= 0
    if isinstance(value, str):
        return bool(MONEY_PATTERN.match(value.strip()))
    return False


def parse_money(value: Any) -> Decimal:
    """Parse an amount, returning zero for anything malformed."""
    if not is_money(value):
        return ZERO
    try:
        if isinstance(value, str):
            return Decimal(value.strip())
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def first_money(*values: Any) -> Decimal:
    """Return the first value that parses as a positive amount, else zero."""
    for value in values:
        amount = parse_money(value)
        if amount > 0:
            return amount
    return ZERO


def service_revenue(final_value: Optional[Any], estimated_value: Optional[Any]) -> Decimal:
    """Revenue of one service: the final value when usable, else the estimate."""
    return first_money(final_value, estimated_value)


def to_float(amount: Decimal) -> float:
    """Round to cents for JSON output."""
    return float(amount.quantize(CENTS, rounding=ROUND_HALF_UP))
