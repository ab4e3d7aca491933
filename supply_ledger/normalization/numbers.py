"""
Numeric Sanitizer for ledger amounts.

Handles the formats found in exported statements:
- Indian grouping: 1,23,456.00
- Western grouping: 123,456.00
- Currency prefixes: ₹ 1,200 / Rs. 1,200 / INR 1200
- Tally balance suffixes: 1,200.00 Dr / 1,200.00 Cr
- Blank cells, None, NaN

Debit and credit live in separate columns, so every amount is
non-negative. A value that cannot be read becomes 0 and is logged.
"""

import math
import re
from decimal import Decimal
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

_CURRENCY_PREFIX = re.compile(r"^(₹|rs\.?|inr)\s*", re.IGNORECASE)
_BALANCE_SUFFIX = re.compile(r"\s*(dr|cr)\.?$", re.IGNORECASE)
_GROUPING = re.compile(r"[,\s]")


def _clean_text(text: str) -> str:
    cleaned = text.strip()
    cleaned = _CURRENCY_PREFIX.sub("", cleaned)
    cleaned = _BALANCE_SUFFIX.sub("", cleaned)
    return _GROUPING.sub("", cleaned)


def sanitize_number(value: Any) -> float:
    """
    Convert a number or numeric text to a non-negative float.

    Never raises and never returns NaN:
        >>> sanitize_number("1,23,456.00")
        123456.0
        >>> sanitize_number("")
        0.0
        >>> sanitize_number(None)
        0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        text = _clean_text(str(value))
        if not text or text in {"-", "--"}:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            logger.warning("number_parse_failed", raw_value=str(value))
            return 0.0

    if not math.isfinite(number):
        return 0.0

    if number < 0:
        logger.warning("negative_amount_clamped", raw_value=str(value))
        return 0.0

    return number
