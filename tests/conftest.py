"""Shared fixtures for the Supply Ledger test suite."""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from supply_ledger.models.records import DeliveryRecord, LedgerRow, MaterialType
from supply_ledger.services.rendering import DocumentLayout, DocumentRenderer, RenderedDocument


def run(coro):
    """Run a coroutine to completion (flows are async; tests are not)."""
    return asyncio.run(coro)


def make_delivery(
    material=MaterialType.METAL1,
    quantity="1",
    vehicle="MH04AB1234",
    on=date(2025, 11, 5),
    challan="JME/2025/001",
) -> DeliveryRecord:
    return DeliveryRecord(
        date=on,
        challan_number=challan,
        material=material,
        quantity=Decimal(quantity),
        vehicle_number=vehicle,
        site_name="Arihant Aaradhya",
    )


def make_ledger_row(n: int, debit: float = 0.0, credit: float = 100.0) -> LedgerRow:
    return LedgerRow(
        date=f"2025-04-{(n % 28) + 1:02d}",
        particulars=f"Sales {n}",
        voucher_type="Sales",
        voucher_number=str(n),
        debit=debit,
        credit=credit,
    )


class FakeRenderer(DocumentRenderer):
    """Renderer that records layouts and returns placeholder bytes."""

    def __init__(self, fail: bool = False):
        self.layouts: list[DocumentLayout] = []
        self.fail = fail

    async def render(self, layout: DocumentLayout) -> RenderedDocument:
        if self.fail:
            raise RuntimeError("renderer crashed")
        self.layouts.append(layout)
        return RenderedDocument(content=b"%PDF-1.4 fake", filename=layout.filename)


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def metal_deliveries() -> list[DeliveryRecord]:
    return [
        make_delivery(quantity="2", vehicle="V1", challan="JME/2025/001"),
        make_delivery(quantity="3", vehicle="V1", challan="JME/2025/002"),
    ]


class FakeWorksheet:
    def __init__(self, title, values=None):
        self.title = title
        self.values = values or [["id"]]
        self.client = None

    def update_title(self, title):
        if self.client and (self.title, title) in self.client.blocked_renames:
            raise RuntimeError("API rate limit")
        self.title = title

    def get_all_values(self):
        return self.values

    def append_rows(self, rows, value_input_option=None):
        self.values.extend(rows)


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient with worksheets in a list."""

    def __init__(self, sheets):
        self.sheets = []
        for sheet in sheets:
            self.add_sheet(sheet)
        self.settings = MagicMock(ledger_sheet_name="ClientLedger", deliveries_sheet_name="Deliveries")
        self.blocked_renames = set()
        self.undeletable = set()

    def add_sheet(self, sheet):
        sheet.client = self
        self.sheets.append(sheet)
        return sheet

    def titles(self):
        return {sheet.title for sheet in self.sheets}

    def find_worksheet(self, title):
        return next((s for s in self.sheets if s.title == title), None)

    def create_worksheet(self, title, columns, rows=1000):
        return self.add_sheet(FakeWorksheet(title, [list(columns)]))

    def get_worksheet(self, title, columns, rows=1000):
        return self.find_worksheet(title) or self.create_worksheet(title, columns, rows)

    def delete_worksheet(self, sheet):
        if sheet.title in self.undeletable:
            raise RuntimeError("API rate limit")
        self.sheets.remove(sheet)
