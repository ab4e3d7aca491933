"""
Integration tests for the numbering, invoice and ledger flows.

All flows run against in-memory storage (or a fake Sheets client) and a fake renderer.
"""

from datetime import date
from decimal import Decimal

import pytest

from supply_ledger.audit import AuditLogger
from supply_ledger.errors import (
    EmptyInvoiceError,
    ImportValidationError,
    LedgerSwapIncompleteError,
    PartialCommitFailure,
    PermissionDeniedError,
)
from supply_ledger.ledger import LedgerFilter, LedgerImporter
from supply_ledger.models.audit import AuditEventType, AuditSeverity
from supply_ledger.models.records import InvoiceCategory, MaterialType, UserRole
from supply_ledger.orchestrator import (
    InvoiceFlow,
    LedgerFlow,
    NumberingFlow,
    create_app_components,
)
from supply_ledger.services.rendering import RenderingError
from supply_ledger.services.storage import (
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryDeliveryStorage,
    InMemoryInvoiceArchive,
    InMemoryLedgerStorage,
    StorageError,
)

from tests.conftest import (
    FakeRenderer,
    FakeSheetsClient,
    FakeWorksheet,
    make_delivery,
    make_ledger_row,
    run,
)

LEDGER_CSV = (
    "Date,Particulars,Vch Type,Vch No.,Debit,Credit\n"
    ",Particulars,,,,\n"
    "01-Apr-25,Sales,Sales,1,,\"1,50,000.00\"\n"
    "45760,Federal Bank Ltd (Receipt),Receipt,2,50000,\n"
    "someday,Sales,Sales,3,,100\n"
    ",Grand Total,,,50000,150100\n"
).encode("utf-8")


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


def event_types(audit_storage):
    return [event.event_type for event in audit_storage.events]


class TestNumberingFlow:
    """Tests for NumberingFlow."""

    def test_next_number(self, audit_logger, audit_storage):
        """Test allocation from stored deliveries is audited."""
        storage = InMemoryDeliveryStorage([make_delivery(challan="JME/2025/041")])
        flow = NumberingFlow(storage, audit_logger=audit_logger)
        assert run(flow.next_challan_number(year=2025)) == "JME/2025/042"
        assert event_types(audit_storage) == [AuditEventType.CHALLAN_NUMBER_ALLOCATED]

    def test_fallback_when_store_unreadable(self, audit_logger, audit_storage):
        """Test an unreadable store yields the year's first number and a warning."""
        storage = InMemoryDeliveryStorage([make_delivery(challan="JME/2025/041")])
        storage.fail_reads = True
        flow = NumberingFlow(storage, audit_logger=audit_logger)

        assert run(flow.next_challan_number(year=2025)) == "JME/2025/001"
        event = audit_storage.events[0]
        assert event.event_type == AuditEventType.CHALLAN_NUMBER_FALLBACK
        assert event.severity == AuditSeverity.WARNING

    def test_scheme_and_width(self):
        """Test configured prefix and padding."""
        flow = NumberingFlow(InMemoryDeliveryStorage(), scheme="ABC", width=5)
        assert run(flow.next_challan_number(year=2026)) == "ABC/2026/00001"


class TestInvoiceFlow:
    """Tests for InvoiceFlow."""

    @pytest.fixture
    def flow(self, metal_deliveries, renderer, audit_logger):
        return InvoiceFlow(
            InMemoryDeliveryStorage(metal_deliveries),
            renderer=renderer,
            archive=InMemoryInvoiceArchive(),
            audit_logger=audit_logger,
        )

    def test_generate_invoice(self, flow, renderer, audit_storage):
        """Test compile, render and archive share one correlation ID."""
        generated = run(flow.generate_invoice(
            "2025-11",
            InvoiceCategory.BUILDING_MATERIAL,
            rate_table={MaterialType.METAL1: 100},
            invoice_date=date(2025, 12, 1),
        ))

        assert generated.total_amount == Decimal("526")
        assert generated.file_url == "memory://invoices/Invoice_Building Material_2025-11.pdf"
        assert len(renderer.layouts) == 1
        assert event_types(audit_storage) == [
            AuditEventType.INVOICE_COMPILED,
            AuditEventType.INVOICE_RENDERED,
            AuditEventType.INVOICE_SAVED,
        ]
        assert len({event.correlation_id for event in audit_storage.events}) == 1
        assert [i.id for i in run(flow.list_invoices())] == [generated.id]

    def test_rate_gap_is_audited(self, metal_deliveries, audit_logger, audit_storage):
        """Test missing rates produce a warning event."""
        flow = InvoiceFlow(InMemoryDeliveryStorage(metal_deliveries), audit_logger=audit_logger)
        invoice = run(flow.compile("2025-11", "Building Material", rate_table={"Metal 1": 0}))
        assert invoice.configuration_gaps == ["Metal 1"]
        assert AuditEventType.INVOICE_RATE_MISSING in event_types(audit_storage)

    def test_empty_invoice_not_rendered(self, flow, renderer, audit_storage):
        """Test an empty month is refused before reaching the renderer."""
        invoice = run(flow.compile("2024-01", InvoiceCategory.MACHINERY))
        with pytest.raises(EmptyInvoiceError, match="No entries found for Machinery in 2024-01"):
            run(flow.render_invoice(invoice))
        assert renderer.layouts == []
        assert AuditEventType.INVOICE_EMPTY in event_types(audit_storage)

    def test_renderer_failure_is_audited(self, metal_deliveries, audit_logger, audit_storage):
        """Test renderer errors propagate and are logged."""
        flow = InvoiceFlow(
            InMemoryDeliveryStorage(metal_deliveries),
            renderer=FakeRenderer(fail=True),
            audit_logger=audit_logger,
        )
        invoice = run(flow.compile("2025-11", InvoiceCategory.BUILDING_MATERIAL))
        with pytest.raises(RuntimeError):
            run(flow.render_invoice(invoice))
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in event_types(audit_storage)

    def test_missing_collaborators(self, metal_deliveries):
        """Test rendering or saving without a renderer/archive fails clearly."""
        flow = InvoiceFlow(InMemoryDeliveryStorage(metal_deliveries))
        invoice = run(flow.compile("2025-11", InvoiceCategory.BUILDING_MATERIAL))
        with pytest.raises(RenderingError):
            run(flow.render_invoice(invoice))
        with pytest.raises(StorageError):
            run(flow.save_invoice(invoice, b"%PDF", "x.pdf"))
        assert run(flow.list_invoices()) == []


class TestLedgerFlow:
    """Tests for LedgerFlow."""

    def test_preview_then_commit(self, renderer, audit_logger, audit_storage):
        """Test an uploaded CSV is previewed, committed and audited."""
        storage = InMemoryLedgerStorage(rows=[make_ledger_row(n) for n in range(3)])
        flow = LedgerFlow(storage, renderer=renderer, audit_logger=audit_logger)

        preview = run(flow.preview_upload(LEDGER_CSV, "ledger.csv"))
        assert preview.row_count == 2
        assert len(preview.skipped_rows) == 3
        assert [row.date for row in preview.rows] == ["2025-04-01", "2025-04-13"]
        assert len(storage.rows) == 3

        committed = run(flow.commit(preview, UserRole.ADMIN, actor="owner"))
        assert committed == 2

        statement = run(flow.statement())
        assert statement.total_billed == 150000.0
        assert statement.total_received == 50000.0
        assert statement.closing_balance == 100000.0

        assert event_types(audit_storage) == [
            AuditEventType.LEDGER_IMPORT_PREVIEWED,
            AuditEventType.LEDGER_IMPORT_COMMITTED,
        ]
        assert audit_storage.events[1].actor == "owner"

    def test_render_statement(self, renderer):
        """Test the filtered statement is laid out and rendered."""
        rows = [make_ledger_row(1), make_ledger_row(2).model_copy(update={"voucher_type": "Receipt"})]
        flow = LedgerFlow(InMemoryLedgerStorage(rows=rows), renderer=renderer)
        content, filename = run(flow.render_statement("April 2025", LedgerFilter(voucher_type="Receipt")))
        assert content.startswith(b"%PDF")
        assert filename == "Ledger_Arihant_April_2025.pdf"
        assert len(renderer.layouts[0].tables()[0].rows) == 1

    def test_rejected_upload_is_audited(self, audit_logger, audit_storage):
        """Test unreadable files become ImportValidationError."""
        flow = LedgerFlow(InMemoryLedgerStorage(), audit_logger=audit_logger)
        with pytest.raises(ImportValidationError, match="Unsupported"):
            run(flow.preview_upload(b"%PDF-1.4", "ledger.pdf"))
        assert event_types(audit_storage) == [AuditEventType.LEDGER_IMPORT_REJECTED]

    def test_upload_size_limit(self):
        """Test oversized uploads are refused before decoding."""
        flow = LedgerFlow(InMemoryLedgerStorage(), max_upload_bytes=10)
        with pytest.raises(ImportValidationError, match="limit"):
            run(flow.preview_upload(LEDGER_CSV, "ledger.csv"))

    def test_partial_commit_is_critical(self, audit_logger, audit_storage):
        """Test a partial commit is audited at CRITICAL with counts."""
        storage = InMemoryLedgerStorage(rows=[make_ledger_row(0)], fail_on_batch=2)
        flow = LedgerFlow(
            storage,
            importer=LedgerImporter(storage, batch_size=1),
            audit_logger=audit_logger,
        )
        preview = run(flow.preview_upload(LEDGER_CSV, "ledger.csv"))

        with pytest.raises(PartialCommitFailure):
            run(flow.commit(preview, UserRole.ADMIN, actor="owner"))

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.LEDGER_IMPORT_PARTIAL
        assert event.severity == AuditSeverity.CRITICAL
        assert event.details["committed_rows"] == 1
        assert len(storage.rows) == 1

    def test_incomplete_swap_is_critical(self, audit_logger, audit_storage):
        """Test a swap that leaves no live sheet is audited at CRITICAL."""
        client = FakeSheetsClient([FakeWorksheet("ClientLedger", [["id"], ["old"]])])
        client.blocked_renames.update({
            ("ClientLedger__staging", "ClientLedger"),
            ("ClientLedger__retired", "ClientLedger"),
        })
        flow = LedgerFlow(GoogleSheetsLedgerStorage(client), audit_logger=audit_logger)
        preview = run(flow.preview_upload(LEDGER_CSV, "ledger.csv"))

        with pytest.raises(LedgerSwapIncompleteError):
            run(flow.commit(preview, UserRole.ADMIN, actor="owner"))

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.LEDGER_SWAP_INCOMPLETE
        assert event.severity == AuditSeverity.CRITICAL
        assert event.details["staged_sheet"] == "ClientLedger__staging"

    def test_non_admin_commit_is_audited(self, audit_logger, audit_storage):
        """Test permission denials are recorded."""
        storage = InMemoryLedgerStorage()
        flow = LedgerFlow(storage, audit_logger=audit_logger)
        preview = run(flow.preview_upload(LEDGER_CSV, "ledger.csv"))
        with pytest.raises(PermissionDeniedError):
            run(flow.commit(preview, UserRole.USER, actor="clerk"))
        assert event_types(audit_storage)[-1] == AuditEventType.PERMISSION_DENIED
        assert storage.rows == []


class TestAppComponents:
    """Tests for create_app_components."""

    def test_in_memory_components(self):
        """Test the factory wires flows over in-memory storage."""
        numbering, invoices, ledger, client = create_app_components(use_storage=False)
        assert client is None
        assert run(numbering.next_challan_number(year=2025)) == "JME/2025/001"
        assert run(invoices.list_invoices()) == []
        assert run(ledger.statement()).rows == []
