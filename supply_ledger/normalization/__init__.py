"""Normalizers for dates and amounts found in uploaded ledgers."""

from supply_ledger.normalization.dates import (
    DateParseResult,
    is_iso_date,
    normalize_date,
    parse_ledger_date,
)
from supply_ledger.normalization.numbers import sanitize_number

__all__ = [
    "DateParseResult",
    "is_iso_date",
    "normalize_date",
    "parse_ledger_date",
    "sanitize_number",
]
