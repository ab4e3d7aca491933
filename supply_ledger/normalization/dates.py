"""
Ledger Date Normalizer

Accounting exports reach us in three shapes:
1. Spreadsheet serial dates (44910, "44910.25")
2. Tally-style text dates ("15-Dec-22", "01-jan-2023")
3. Anything else a date parser understands ("2023-01-26", "Jan 26 2023")

Everything is converted to canonical YYYY-MM-DD.

IMPORTANT: This module NEVER raises. A value it cannot read is returned
as-is (trimmed) and flagged, so callers must check is_iso_date() before
trusting the result.
"""

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import structlog
from dateutil import parser as date_parser
from pydantic import BaseModel

logger = structlog.get_logger(__name__)


# Serial dates below this are voucher numbers, above the upper bound garbage
SERIAL_DATE_MIN = 10_000
SERIAL_DATE_MAX = 2_958_465

# 1899-12-30 (spreadsheet day zero) is 25,569 days before 1970-01-01
SPREADSHEET_EPOCH_OFFSET_DAYS = 25_569
MS_PER_DAY = 86_400 * 1000

# Serial fractions like 44910.99999999 land just before midnight
MIDNIGHT_SKEW_MS = 60_000

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MONTH_ABBREVIATIONS = {
    "jan": "01", "feb": "02", "mar": "03", "apr": "04",
    "may": "05", "jun": "06", "jul": "07", "aug": "08",
    "sep": "09", "oct": "10", "nov": "11", "dec": "12",
}

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DateParseResult(BaseModel):
    """Outcome of normalizing one date value."""

    value: str
    parsed: bool
    method: Optional[str] = None  # "native", "serial", "text_month", "parser"


def is_iso_date(value: Any) -> bool:
    """True if value is a real calendar date in YYYY-MM-DD form."""
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _is_numeric_text(text: str) -> bool:
    # Blank counts as numeric so "1--22" is not read as a text-month date
    if not text.strip():
        return True
    try:
        float(text)
    except ValueError:
        return False
    return True


def _from_serial(serial: float) -> Optional[str]:
    millis = math.floor((serial - SPREADSHEET_EPOCH_OFFSET_DAYS) * MS_PER_DAY + 0.5)
    try:
        moment = UNIX_EPOCH + timedelta(milliseconds=millis + MIDNIGHT_SKEW_MS)
    except OverflowError:
        return None
    return moment.date().isoformat()


def _from_text_month(text: str) -> Optional[str]:
    parts = text.split("-")
    if len(parts) != 3 or _is_numeric_text(parts[1]):
        return None

    day, month_text, year = (part.strip() for part in parts)
    month = MONTH_ABBREVIATIONS.get(month_text.lower())
    if month is None or not day.isdigit() or not year.isdigit():
        return None
    if len(year) == 2:
        year = "20" + year
    elif len(year) != 4:
        return None

    candidate = f"{year}-{month}-{day.zfill(2)}"
    return candidate if is_iso_date(candidate) else None


def _from_parser(text: str, dayfirst: bool) -> Optional[str]:
    try:
        return date_parser.parse(text, dayfirst=dayfirst).date().isoformat()
    except (ValueError, OverflowError):
        return None


def parse_ledger_date(value: Any, dayfirst: bool = False) -> DateParseResult:
    """
    Normalize a date value and report how (or whether) it was understood.

    Args:
        value: Serial number, text date, or a date/datetime object
            (openpyxl hands date-formatted cells over already typed)
        dayfirst: Passed to the generic parser for ambiguous "03/04/2023"

    Returns:
        DateParseResult; on failure value is the trimmed input and
        parsed is False.
    """
    if value is None or value == "":
        return DateParseResult(value="", parsed=False)

    if isinstance(value, datetime):
        return DateParseResult(value=value.date().isoformat(), parsed=True, method="native")
    if isinstance(value, date):
        return DateParseResult(value=value.isoformat(), parsed=True, method="native")

    # 1. Spreadsheet serial date
    number = _as_number(value)
    if number is not None and SERIAL_DATE_MIN < number < SERIAL_DATE_MAX:
        iso = _from_serial(number)
        if iso:
            return DateParseResult(value=iso, parsed=True, method="serial")

    text = str(value).strip()

    # 2. DD-Mon-YY / DD-Mon-YYYY
    iso = _from_text_month(text)
    if iso:
        return DateParseResult(value=iso, parsed=True, method="text_month")

    # 3. Anything the generic parser understands
    if text:
        iso = _from_parser(text, dayfirst)
        if iso:
            return DateParseResult(value=iso, parsed=True, method="parser")

    # 4. Give up, but visibly
    logger.warning("date_parse_failed", raw_value=text)
    return DateParseResult(value=text, parsed=False)


def normalize_date(value: Any, dayfirst: bool = False) -> str:
    """
    Convert a heterogeneous date value to YYYY-MM-DD.

    Returns the input unchanged (trimmed) when it cannot be parsed.
    """
    return parse_ledger_date(value, dayfirst=dayfirst).value
