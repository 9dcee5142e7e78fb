"""Shared number and date parsing utilities for statement and target imports.

Centralises the lenient parsing that every import path needs: numbers with
thousands separators or accounting-style negatives, statement period ranges,
and ISO dates embedded in free text.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

# Leading numeric prefix, like a lenient float parse ("12.5abc" -> 12.5)
_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# "January 1, 2024 - December 31, 2024"
_PERIOD_RANGE_RE = re.compile(r"(\w+\s+\d+,\s+\d{4})\s*-\s*(\w+\s+\d+,\s+\d{4})")

_ISO_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")


def parse_number(value) -> Decimal | None:
    """Parse a loosely formatted number to a Decimal.

    Handles the formats found in brokerage exports:
    - Thousands separators ("1,234.56")
    - Accounting negatives ("(1,234.56)" -> -1234.56)
    - Trailing junk after the numeric prefix ("12.5%" -> 12.5)
    - Numbers and Decimals passed through

    Args:
        value: A string, int, float, Decimal, or None.

    Returns:
        The parsed Decimal, or None if no leading number is present.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    text = str(value).strip().replace(",", "")
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1].strip()

    match = _NUMBER_PREFIX_RE.match(text)
    if not match:
        return None
    try:
        number = Decimal(match.group(0))
    except InvalidOperation:
        return None
    return -number if negative else number


def parse_number_or_zero(value) -> Decimal:
    """Like :func:`parse_number` but returns 0 for unparseable input."""
    number = parse_number(value)
    return number if number is not None else Decimal("0")


def _parse_month_day_year(text: str) -> date | None:
    """Parse "December 31, 2024" or "Dec 31, 2024"."""
    cleaned = " ".join(text.split())
    for fmt in ("%B %d, %Y", "%b %d, %Y"):
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def parse_period_end_date(text: str) -> date | None:
    """Extract the end date of a "Month D, YYYY - Month D, YYYY" range.

    Args:
        text: Free text that may contain a statement period.

    Returns:
        The range's end date, or None if no parseable range is found.
    """
    if not text:
        return None
    match = _PERIOD_RANGE_RE.search(text)
    if not match:
        return None
    return _parse_month_day_year(match.group(2))


def has_period_range(text: str) -> bool:
    """Whether ``text`` contains a "Month D, YYYY - Month D, YYYY" range, parseable or not."""
    return bool(text) and _PERIOD_RANGE_RE.search(text) is not None


def parse_embedded_iso_date(text: str) -> date | None:
    """Extract the first YYYY-MM-DD date found anywhere in ``text``."""
    if not text:
        return None
    match = _ISO_DATE_RE.search(text)
    if not match:
        return None
    try:
        return date.fromisoformat(match.group(1))
    except ValueError:
        return None
