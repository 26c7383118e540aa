"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional
import re

CENT = Decimal("0.01")

# "1234,56" or "1.234,56": comma is the decimal separator
_DECIMAL_COMMA = re.compile(r"^-?(\d{1,3}(\.\d{3})+|\d+),\d+$")


def to_money(value: Any) -> Decimal:
    """Convert a number to a Decimal rounded to cents (half up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal rounded to two places.

    Handles various formats:
    - "123.45", "-123.45", "1,234.56"
    - "1234,56", "-1.234,56" (decimal comma)
    - "R$ 123,45", "$123.45", "€ 12"
    - "(123.45)" (negative in parentheses)

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and any kind of space
    amount_str = re.sub(r"(?i)r\$|[$€£¥]", "", amount_str)
    amount_str = re.sub(r"\s+", "", amount_str)

    if _DECIMAL_COMMA.match(amount_str):
        amount_str = amount_str.replace(".", "").replace(",", ".")
    else:
        amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")

    if is_negative:
        amount = -amount
    return to_money(amount)


def parse_optional_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """Like parse_amount, but returns None instead of raising."""
    try:
        return parse_amount(amount_str or "")
    except ValueError:
        return None
