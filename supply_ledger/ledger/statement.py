"""
Client ledger statement: filtering and running totals over stored rows.

Debit is money received from the client, credit is money billed to the
client, so the closing balance (amount still owed) is credit - debit.
"""

from typing import Iterable, Optional

from pydantic import BaseModel, Field

from supply_ledger.models.records import LedgerRow

ALL = "ALL"


class LedgerFilter(BaseModel):
    """Statement filter. Empty/None/"ALL" fields match everything."""

    search: str = ""
    month: Optional[str] = Field(
        default=None,
        description="YYYY-MM"
    )
    voucher_type: Optional[str] = None

    def matches(self, row: LedgerRow) -> bool:
        term = self.search.strip().lower()
        if term and term not in row.particulars.lower() and term not in row.voucher_number.lower():
            return False
        if self.month and self.month != ALL and row.month != self.month:
            return False
        if self.voucher_type and self.voucher_type != ALL and row.voucher_type != self.voucher_type:
            return False
        return True


class LedgerStatement(BaseModel):
    rows: list[LedgerRow] = Field(default_factory=list)

    @property
    def total_received(self) -> float:
        return sum(row.debit for row in self.rows)

    @property
    def total_billed(self) -> float:
        return sum(row.credit for row in self.rows)

    @property
    def closing_balance(self) -> float:
        return self.total_billed - self.total_received


def build_statement(
    rows: Iterable[LedgerRow],
    ledger_filter: Optional[LedgerFilter] = None,
) -> LedgerStatement:
    """Rows matching the filter, in stored order, with their totals."""
    ledger_filter = ledger_filter or LedgerFilter()
    return LedgerStatement(rows=[row for row in rows if ledger_filter.matches(row)])


def voucher_types(rows: Iterable[LedgerRow]) -> list[str]:
    """Distinct non-empty voucher types, sorted."""
    return sorted({row.voucher_type for row in rows if row.voucher_type})


def ledger_months(rows: Iterable[LedgerRow]) -> list[str]:
    """Distinct YYYY-MM months present, newest first."""
    return sorted({row.month for row in rows if len(row.date) >= 7}, reverse=True)
