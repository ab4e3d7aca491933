"""
Client Ledger Package

Column mapping, the two-step bulk importer and statement filtering.
"""

from supply_ledger.ledger.importer import LedgerImporter, chunked
from supply_ledger.ledger.mapper import (
    CANDIDATES,
    DEFAULT_LABELS,
    is_header_or_footer,
    map_columns,
)
from supply_ledger.ledger.statement import (
    LedgerFilter,
    LedgerStatement,
    build_statement,
    ledger_months,
    voucher_types,
)

__all__ = [
    "CANDIDATES",
    "DEFAULT_LABELS",
    "LedgerFilter",
    "LedgerImporter",
    "LedgerStatement",
    "build_statement",
    "chunked",
    "is_header_or_footer",
    "ledger_months",
    "map_columns",
    "voucher_types",
]
