# src/btcperf/shared/parsing.py
"""
Input Normalizer - Locale-tolerant Amount and Date Parsing

Position data arrives as display text ("EUR 10,000", "1.234,56", "24 Nov 2024").
This module turns it into floats and dates without ever raising: unparsable
amounts come back as NaN, unparsable dates as None.

Files that USE this module:
- btcperf.adapters.sources.json_file (normalises raw position records)
- btcperf.adapters.providers.coingecko (format_api_date for the history endpoint)
- tests.test_parsing (unit tests)

Files that this module USES:
- None (pure utility functions)
"""
import math
import re
from datetime import date, datetime
from typing import Optional

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_DATE_RE = re.compile(r"^\s*(\d{1,2})\s+([A-Za-z]{3})\s+(\d{4})\s*$")
_ORNAMENT_RE = re.compile(r"[^0-9.,\-]")


def _to_float(s: str) -> float:
    """Parse a cleaned numeric string; only a single leading minus survives."""
    negative = s.startswith("-")
    s = s.replace("-", "")
    if negative:
        s = "-" + s
    try:
        return float(s)
    except ValueError:
        return math.nan


def parse_amount(text) -> float:
    """
    Parse a monetary amount written with either "." or "," as separators.

    Rules:
    - Both separators present: the rightmost one is the decimal separator,
      the other is a thousands separator and is stripped.
    - One separator type only: a trailing group of exactly 3 digits marks
      thousands (all occurrences stripped), a trailing group of exactly 2 digits
      marks a decimal, anything else treats the last occurrence as decimal.
    - Currency symbols, letters and spaces are ignored.

    Args:
        text: Raw text such as "€3,732.68", "EUR 15,000", "-1.234,56"

    Returns:
        Parsed value, or NaN if nothing numeric could be read
    """
    if text is None:
        return math.nan
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return float(text)

    s = _ORNAMENT_RE.sub("", str(text).strip())
    if not s:
        return math.nan

    commas = s.count(",")
    dots = s.count(".")

    if commas and dots:
        decimal_sep = "," if s.rfind(",") > s.rfind(".") else "."
        thousands_sep = "." if decimal_sep == "," else ","
        s = s.replace(thousands_sep, "")
        head, _, tail = s.rpartition(decimal_sep)
        # Repeated decimal separators collapse onto the last one
        s = head.replace(decimal_sep, "") + "." + tail
        return _to_float(s)

    if commas or dots:
        sep = "," if commas else "."
        head, _, tail = s.rpartition(sep)
        if len(tail) == 3:
            return _to_float(s.replace(sep, ""))
        return _to_float(head.replace(sep, "") + "." + tail)

    return _to_float(s)


def parse_date(text) -> Optional[date]:
    """
    Parse "<day> <3-letter-month> <year>" (e.g. "24 Nov 2024").

    Returns:
        date instance, or None for any other shape or an impossible calendar date
    """
    if not text:
        return None
    match = _DATE_RE.match(str(text))
    if not match:
        return None
    day, month_name, year = match.groups()
    month = MONTHS.get(month_name.lower())
    if month is None:
        return None
    try:
        return date(int(year), month, int(day))
    except ValueError:
        return None


def format_api_date(value: date) -> str:
    """Format a date as dd-mm-yyyy, the form the history endpoint expects."""
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%d-%m-%Y")
