"""
Challan (delivery document) number allocation.

Numbers look like JME/2025/007: scheme, calendar year, sequence.

RULES:
- The next number is max-seen + 1 for the (scheme, year), never count + 1,
  so deleting a challan never frees its number for reuse.
- The sequence restarts at 001 every calendar year.

KNOWN LIMITATION: Allocation is read-then-compute with no reservation.
Two users allocating against the same stale read get the same number
(last write wins). This is accepted behavior, not an oversight.
"""

import re
from typing import Iterable, Optional, Union

from supply_ledger.models.records import DeliveryRecord

DEFAULT_SCHEME = "JME"
DEFAULT_WIDTH = 3


def _challan_pattern(scheme: str, year: int) -> "re.Pattern[str]":
    return re.compile(rf"{re.escape(scheme)}/{year}/(\d+)")


def highest_sequence(
    challan_numbers: Iterable[Optional[str]],
    year: int,
    scheme: str = DEFAULT_SCHEME,
) -> int:
    """Largest sequence number used for (scheme, year), 0 if none."""
    pattern = _challan_pattern(scheme, year)
    highest = 0
    for number in challan_numbers:
        if not number:
            continue
        match = pattern.search(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def format_challan_number(
    sequence: int,
    year: int,
    scheme: str = DEFAULT_SCHEME,
    width: int = DEFAULT_WIDTH,
) -> str:
    return f"{scheme}/{year}/{sequence:0{width}d}"


def allocate_challan_number(
    records: Iterable[Union[DeliveryRecord, str, None]],
    year: int,
    scheme: str = DEFAULT_SCHEME,
    width: int = DEFAULT_WIDTH,
) -> str:
    """
    Compute the next challan number for a year.

    Args:
        records: All current delivery records (or their challan numbers)
        year: Calendar year to allocate in
        scheme: Numbering prefix
        width: Zero-padding of the sequence (wider sequences are not cut)

    Returns:
        "<scheme>/<year>/<n>" with n = highest existing + 1
    """
    numbers = (
        record.challan_number if isinstance(record, DeliveryRecord) else record
        for record in records
    )
    return format_challan_number(
        highest_sequence(numbers, year, scheme) + 1,
        year,
        scheme=scheme,
        width=width,
    )
