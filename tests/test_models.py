"""
Tests for Supply Ledger models

Test strategy:
1. Unit tests for individual components (models, normalizers, billing math)
2. Integration tests for flows (with in-memory storage and a fake renderer)
3. No real API calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from supply_ledger.models.records import (
    CompiledInvoice,
    DeliveryRecord,
    InvoiceCategory,
    LedgerImportPreview,
    LedgerRow,
    MaterialType,
    SkippedRow,
    SkipReason,
    TaxBreakdown,
    classify_particulars,
    round_whole,
)
from supply_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestDeliveryRecord:
    """Tests for delivery (challan) records."""

    def test_material_enum_stored_as_value(self):
        """Test that a MaterialType member is stored as its plain string."""
        record = DeliveryRecord(
            date=date(2025, 11, 5),
            material=MaterialType.DRINKING_JAR,
            quantity=Decimal("20"),
        )
        assert record.material == "Drinking Jar (20L)"
        assert type(record.material) is str

    def test_month_property(self):
        """Test month is derived from the delivery date."""
        record = DeliveryRecord(date=date(2025, 3, 9), material="GSB", quantity=Decimal("1"))
        assert record.month == "2025-03"

    def test_rejects_negative_quantity(self):
        """Test that negative quantities are rejected."""
        with pytest.raises(ValueError):
            DeliveryRecord(date=date(2025, 1, 1), material="GSB", quantity=Decimal("-1"))

    def test_strips_whitespace(self):
        """Test that text fields are trimmed."""
        record = DeliveryRecord(
            date=date(2025, 1, 1),
            material="  Rubble ",
            quantity=Decimal("1"),
            vehicle_number=" MH04 ",
        )
        assert record.material == "Rubble"
        assert record.vehicle_number == "MH04"


class TestLedgerRow:
    """Tests for client ledger rows and particulars classification."""

    def test_defaults(self):
        """Test debit and credit default to zero."""
        row = LedgerRow(date="2025-04-01", particulars="Opening")
        assert row.debit == 0
        assert row.credit == 0
        assert row.month == "2025-04"

    def test_rejects_negative_amounts(self):
        """Test that negative debit is rejected."""
        with pytest.raises(ValueError):
            LedgerRow(date="2025-04-01", debit=-5)

    def test_classification_from_bank_suffix(self):
        """Test "<Bank> (<Type>)" particulars."""
        row = LedgerRow(date="2025-04-01", particulars="Federal Bank Ltd (Payment)", voucher_type="Receipt")
        assert row.classification.entry_type == "Payment"
        assert row.classification.bank_name == "Federal Bank Ltd"

    def test_classification_from_transfer_prefix(self):
        """Test "<TYPE>: <Bank>" particulars."""
        result = classify_particulars("RTGS: HDFC Bank")
        assert result.entry_type == "RTGS"
        assert result.bank_name == "HDFC Bank"

    def test_classification_falls_back_to_voucher_type(self):
        """Test plain particulars use the voucher type."""
        result = classify_particulars("Arihant Superstructures Ltd", "Sales")
        assert result.entry_type == "Sales"
        assert result.bank_name is None

    def test_classification_without_anything(self):
        """Test empty particulars and voucher type give Other."""
        assert classify_particulars("", "").entry_type == "Other"

    def test_suffix_without_bank_is_not_a_bank(self):
        """Test a parenthesised suffix alone does not make a bank."""
        result = classify_particulars("Metal 1 (Extra)", "Sales")
        assert result.bank_name is None
        assert result.entry_type == "Sales"


class TestInvoiceModels:
    """Tests for invoice value objects."""

    def test_round_whole_is_half_up(self):
        """Test display rounding rounds .5 up."""
        assert round_whole(Decimal("2.5")) == Decimal("3")
        assert round_whole(Decimal("3.5")) == Decimal("4")
        assert round_whole(Decimal("3.49")) == Decimal("3")

    def test_tax_breakdown_rounding(self):
        """Test rounded tax components."""
        tax = TaxBreakdown(
            sgst_percent=Decimal("2.5"),
            cgst_percent=Decimal("2.5"),
            sgst_amount=Decimal("12.5"),
            cgst_amount=Decimal("12.5"),
        )
        assert tax.rounded_sgst == Decimal("13")
        assert tax.total_tax == Decimal("25")

    def test_empty_invoice(self):
        """Test an invoice with no line items reports empty."""
        invoice = CompiledInvoice(month="2025-11", category=InvoiceCategory.MACHINERY)
        assert invoice.is_empty
        assert invoice.grand_total == 0
        assert invoice.amount_in_words == "Zero"

    def test_month_format_validated(self):
        """Test month must be YYYY-MM."""
        with pytest.raises(ValueError):
            CompiledInvoice(month="2025-13", category=InvoiceCategory.MACHINERY)
        with pytest.raises(ValueError):
            CompiledInvoice(month="Nov 2025", category=InvoiceCategory.MACHINERY)


class TestImportPreview:
    """Tests for LedgerImportPreview."""

    def test_totals_and_skips(self):
        """Test preview totals and skip grouping."""
        preview = LedgerImportPreview(
            rows=[
                LedgerRow(date="2025-04-01", debit=100.0),
                LedgerRow(date="2025-04-02", credit=250.5),
            ],
            skipped_rows=[
                SkippedRow(row_index=0, reason=SkipReason.HEADER_FOOTER),
                SkippedRow(row_index=3, reason=SkipReason.UNPARSED_DATE),
            ],
            total_input_rows=4,
        )
        assert preview.row_count == 2
        assert preview.total_debit == 100.0
        assert preview.total_credit == 250.5
        assert len(preview.skipped_by_reason(SkipReason.UNPARSED_DATE)) == 1


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.CHALLAN_NUMBER_ALLOCATED,
            description="Challan number allocated",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORT_COMMITTED,
            description="Committed",
            actor="admin@example.com",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "ledger_import_committed"
        assert log_dict["actor"] == "admin@example.com"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to Google Sheets row."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.INVOICE_SAVED,
            description="Saved",
            correlation_id=correlation_id,
            details={"total": Decimal("1050")},
        )
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "invoice_saved"
        assert row[6] == str(correlation_id)
        assert '"1050"' in row[8]

    def test_builder_partial_commit_is_critical(self):
        """Test that a partial commit is logged at the highest severity."""
        event = AuditEventBuilder.ledger_import_partial(
            import_id=uuid4(),
            failed_batch=2,
            committed_rows=100,
            total_rows=250,
            error_message="boom",
            actor="admin",
        )
        assert event.event_type == AuditEventType.LEDGER_IMPORT_PARTIAL
        assert event.severity == AuditSeverity.CRITICAL
        assert event.details["committed_rows"] == 100
        assert event.actor == "admin"

    def test_builder_rate_missing_is_warning(self):
        """Test that a missing rate is a warning event."""
        event = AuditEventBuilder.invoice_rate_missing(
            month="2025-11",
            category="Machinery",
            materials=["JCB"],
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.details["materials"] == ["JCB"]
