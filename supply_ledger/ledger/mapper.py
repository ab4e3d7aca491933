"""
Ledger column mapper.

Accounting exports label their columns inconsistently ("Vch No.",
"Voucher Number", "Debit (Received)"). Each semantic field has a list of
candidate phrases in priority order; the first phrase found (as a
case-insensitive substring) in any column label wins that label.

A label is claimed by at most one field. Fields are resolved in
FIELD_ORDER so the narrow ones (voucher number/type) claim their columns
before the broad ones get a chance to. "Account Name" feeds particulars
only when the export has no Particulars column.
"""

import re
from functools import lru_cache
from typing import Any, Mapping, Optional

from supply_ledger.models.records import ColumnMapping

# All phrases are lowercase, punctuation-free (see _normalize_label)
CANDIDATES: dict[str, tuple[str, ...]] = {
    "voucher_number": ("vch no", "vchno", "voucher no", "voucher number", "vch number", "bill no"),
    "voucher_type": ("vch type", "voucher type", "vchtype", "entry type", "type"),
    "date": ("voucher date", "txn date", "transaction date", "date"),
    "debit": ("debit", "received", "dr amount", "withdrawal"),
    "credit": ("credit", "billed", "cr amount", "deposit"),
    "dr_cr": ("dr cr", "drcr", "dr or cr"),
    "particulars": ("particulars", "particular", "account name", "ledger name", "party"),
    "account_name": ("account name", "ledger name", "account"),
    "description": ("narration", "description", "remarks", "memo"),
}

DEFAULT_LABELS: dict[str, str] = {
    "date": "Date",
    "particulars": "Particulars",
    "voucher_type": "Vch Type",
    "voucher_number": "Vch No.",
    "debit": "Debit",
    "credit": "Credit",
    "dr_cr": "Dr/Cr",
    "account_name": "Account",
    "description": "Description",
}

FIELD_ORDER = (
    "voucher_number",
    "voucher_type",
    "date",
    "debit",
    "credit",
    "dr_cr",
    "particulars",
    "account_name",
    "description",
)

_PUNCTUATION = re.compile(r"[._\-/#:()]+")
_SPACES = re.compile(r"\s+")


def _normalize_label(label: str) -> str:
    text = _PUNCTUATION.sub(" ", str(label).lower())
    return _SPACES.sub(" ", text).strip()


@lru_cache(maxsize=64)
def _map_labels(labels: tuple[str, ...]) -> ColumnMapping:
    normalized = [(label, _normalize_label(label)) for label in labels]
    claimed: set[str] = set()
    chosen: dict[str, str] = {}

    for field in FIELD_ORDER:
        match: Optional[str] = None
        for phrase in CANDIDATES[field]:
            for label, text in normalized:
                if label not in claimed and phrase in text:
                    match = label
                    break
            if match:
                break
        if match:
            claimed.add(match)
        chosen[field] = match or DEFAULT_LABELS[field]

    return ColumnMapping(**chosen)


def map_columns(row: Mapping[str, Any]) -> ColumnMapping:
    """Best column label per ledger field for one uploaded row."""
    return _map_labels(tuple(str(label) for label in row.keys()))


def is_header_or_footer(particulars: Any) -> bool:
    """
    True for repeated header rows and totals lines.

    The particulars cell either literally reads "Particulars" or contains
    "total" (Opening/Closing Total, Grand Total, ...).
    """
    if particulars is None:
        return False
    text = str(particulars).strip().lower()
    return text == "particulars" or "total" in text
