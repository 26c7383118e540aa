"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser

# Tried in order; day-first formats win over month-first on ambiguous input
STATEMENT_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%d/%Y")

_OFX_DATE = re.compile(r"^(\d{8})$")
_OFX_DATETIME = re.compile(r"^(\d{14})(\.\d+)?(\[[^\]]*\])?$")


def parse_date(date_str: str) -> date:
    """Parse a date string given on the command line.

    Accepts "today", "yesterday" and anything dateutil understands
    ("2025-01-31", "Jan 31 2025", ...).

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    if date_str == "today":
        return today
    if date_str == "yesterday":
        return today - timedelta(days=1)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_statement_date(value: Optional[str]) -> Optional[date]:
    """Parse a transaction date from a statement file.

    The fixed formats are tried first, then dateutil as a fallback.
    Returns None when nothing matches.
    """
    value = (value or "").strip()
    if not value:
        return None

    for fmt in STATEMENT_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    return _fallback_parse(value)


def parse_ofx_date(value: Optional[str]) -> Optional[date]:
    """Parse an OFX date (YYYYMMDD or YYYYMMDDHHMMSS[.XXX][TZ]).

    Returns None when the value is empty or unparseable.
    """
    value = (value or "").strip()
    if not value:
        return None

    match = _OFX_DATE.match(value)
    if match:
        try:
            return datetime.strptime(match.group(1), "%Y%m%d").date()
        except ValueError:
            return None

    match = _OFX_DATETIME.match(value)
    if match:
        try:
            return datetime.strptime(match.group(1), "%Y%m%d%H%M%S").date()
        except ValueError:
            return None

    return _fallback_parse(value)


def _fallback_parse(value: str) -> Optional[date]:
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        return None
