"""Tests for the invoice and ledger page layouts."""

from datetime import date
from decimal import Decimal

from supply_ledger.billing import (
    build_invoice_layout,
    build_ledger_layout,
    compile_invoice,
    default_billing_tables,
    format_indian,
    invoice_number,
)
from supply_ledger.billing.layout import format_percent, ledger_filename
from supply_ledger.models.records import InvoiceCategory, MaterialType
from supply_ledger.services.rendering import PageBreakInstruction

from tests.conftest import make_delivery, make_ledger_row


class TestFormatting:
    """Tests for number and label formatting."""

    def test_format_indian(self):
        """Test Indian digit grouping with two decimals."""
        assert format_indian(1234567.5) == "12,34,567.50"
        assert format_indian(999) == "999.00"
        assert format_indian(100000) == "1,00,000.00"
        assert format_indian(-1500) == "-1,500.00"

    def test_invoice_number_spans_financial_year(self):
        """Test 55/yy-yy+1 numbering and century wrap."""
        assert invoice_number("2025-11") == "55/25-26"
        assert invoice_number("2099-04") == "55/99-00"

    def test_format_percent(self):
        """Test trailing zeros are dropped from GST labels."""
        assert format_percent(Decimal("2.5")) == "2.5"
        assert format_percent(Decimal("9.00")) == "9"

    def test_ledger_filename(self):
        """Test the client's first word and the period make the name."""
        assert ledger_filename("Arihant Superstructures Ltd", "April 2025") == "Ledger_Arihant_April_2025.pdf"


class TestInvoiceLayout:
    """Tests for build_invoice_layout."""

    def test_header_totals_and_filename(self, metal_deliveries):
        """Test invoice number, GST lines, words and filename."""
        invoice = compile_invoice(
            metal_deliveries, "2025-11", InvoiceCategory.BUILDING_MATERIAL,
            rate_table={MaterialType.METAL1: 100},
        )
        layout = build_invoice_layout(invoice, invoice_date=date(2025, 12, 1))
        texts = layout.texts()

        assert layout.filename == "Invoice_Building Material_2025-11.pdf"
        assert "Invoice No. : 55/25-26" in texts
        assert "Invoice Date : 01/12/2025" in texts
        assert "SGST 2.5%" in texts
        assert "CGST 2.5%" in texts
        assert "G. TOTAL" in texts
        assert "526" in texts
        assert "Five Hundred Twenty Six Only" in texts

    def test_table_rows_blank_date_and_challan(self, metal_deliveries):
        """Test grouped rows print lorry, material, quantity, rate and amount."""
        invoice = compile_invoice(
            metal_deliveries, "2025-11", InvoiceCategory.BUILDING_MATERIAL,
            rate_table={MaterialType.METAL1: 100},
        )
        table = build_invoice_layout(invoice).tables()[0]
        assert table.rows == [["", "", "V1", "Metal 1", "5.00", "100", "500"]]
        assert table.highlighted_rows == []

    def test_rate_missing_rows_highlighted(self):
        """Test rows billed without a rate are highlighted."""
        tables = default_billing_tables()
        del tables.rates[MaterialType.JCB.value]
        records = [
            make_delivery(material=MaterialType.DUMPER, vehicle="A1"),
            make_delivery(material=MaterialType.JCB, vehicle="B1"),
        ]
        invoice = compile_invoice(records, "2025-11", InvoiceCategory.MACHINERY, tables=tables)
        table = build_invoice_layout(invoice).tables()[0]
        assert table.highlighted_rows == [1]

    def test_long_invoice_moves_footer_to_new_page(self):
        """Test a long row list pushes the totals box to the next page."""
        records = [make_delivery(vehicle=f"MH{n:02d}") for n in range(20)]
        invoice = compile_invoice(records, "2025-11", InvoiceCategory.BUILDING_MATERIAL)
        layout = build_invoice_layout(invoice)
        assert any(isinstance(i, PageBreakInstruction) for i in layout.instructions)

    def test_short_invoice_fits_one_page(self, metal_deliveries):
        """Test no page break for a few rows."""
        invoice = compile_invoice(metal_deliveries, "2025-11", InvoiceCategory.BUILDING_MATERIAL)
        layout = build_invoice_layout(invoice)
        assert not any(isinstance(i, PageBreakInstruction) for i in layout.instructions)


class TestLedgerLayout:
    """Tests for build_ledger_layout."""

    def test_totals_and_rows(self):
        """Test amounts, dashes for zero and closing balance."""
        rows = [
            make_ledger_row(1, credit=150000.0),
            make_ledger_row(2, debit=50000.0, credit=0.0),
        ]
        layout = build_ledger_layout(rows, "April 2025")
        texts = layout.texts()

        assert layout.filename == "Ledger_Arihant_April_2025.pdf"
        assert "Period: April 2025" in texts
        assert "1,50,000.00" in texts
        assert "50,000.00" in texts
        assert "1,00,000.00" in texts

        table = layout.tables()[0]
        assert table.rows[0][4] == "-"
        assert table.rows[0][5] == "1,50,000.00"
        assert table.rows[1][4] == "50,000.00"
        assert table.rows[1][5] == "-"

    def test_empty_statement(self):
        """Test an empty ledger still lays out zero totals."""
        layout = build_ledger_layout([], "All")
        assert layout.tables()[0].rows == []
        assert "0.00" in layout.texts()
