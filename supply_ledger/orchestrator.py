"""
Main Orchestrator for Supply Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Challan numbering (read deliveries -> next number)
2. Monthly invoices (deliveries -> compile -> render -> archive)
3. Client ledger import (upload -> preview -> confirm -> replace)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No ledger data is replaced without explicit confirmation by an ADMIN
- No empty invoice ever reaches the renderer
- Every step is audited

The billing and ledger modules stay pure; storage, rendering and audit
calls all happen here, awaited one after another.
"""

from datetime import date
from typing import Any, Mapping, Optional, Union
from uuid import UUID

import structlog

from supply_ledger.audit import AuditLogger, create_correlation_id
from supply_ledger.billing import (
    BillingTables,
    PartyDetails,
    allocate_challan_number,
    build_invoice_layout,
    build_ledger_layout,
    compile_invoice,
    default_billing_tables,
    format_challan_number,
)
from supply_ledger.billing.numbering import DEFAULT_SCHEME, DEFAULT_WIDTH
from supply_ledger.config import get_settings
from supply_ledger.errors import (
    CommitFailedError,
    EmptyInvoiceError,
    ImportValidationError,
    LedgerSwapIncompleteError,
    PartialCommitFailure,
    PermissionDeniedError,
)
from supply_ledger.ledger import LedgerFilter, LedgerImporter, LedgerStatement, build_statement
from supply_ledger.models.records import (
    CompiledInvoice,
    GeneratedInvoice,
    InvoiceCategory,
    LedgerImportPreview,
    UserRole,
)
from supply_ledger.services.rendering import DocumentRenderer, RenderedDocument, RenderingError
from supply_ledger.services.storage import (
    DeliveryStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDeliveryStorage,
    GoogleSheetsInvoiceArchive,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryDeliveryStorage,
    InMemoryInvoiceArchive,
    InMemoryLedgerStorage,
    InvoiceArchiveInterface,
    LedgerStorageInterface,
    StorageError,
)
from supply_ledger.services.tabular import TableDecodeError, decode_table

logger = structlog.get_logger(__name__)


class NumberingFlow:
    """
    Hands out the next challan number.

    If the record store cannot be read, the first number of the year is
    returned so data entry is never blocked. The fallback is audited: it
    can collide with an existing challan.
    """

    def __init__(
        self,
        delivery_storage: DeliveryStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        scheme: str = DEFAULT_SCHEME,
        width: int = DEFAULT_WIDTH,
    ):
        self._delivery_storage = delivery_storage
        self._audit_logger = audit_logger
        self._scheme = scheme
        self._width = width

    async def next_challan_number(
        self,
        year: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        correlation_id = correlation_id or create_correlation_id()
        year = year or date.today().year

        try:
            records = await self._delivery_storage.list_deliveries()
        except StorageError as e:
            number = format_challan_number(1, year, scheme=self._scheme, width=self._width)
            if self._audit_logger:
                await self._audit_logger.log_challan_fallback(
                    challan_number=number,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return number

        number = allocate_challan_number(records, year, scheme=self._scheme, width=self._width)

        if self._audit_logger:
            await self._audit_logger.log_challan_allocated(
                challan_number=number,
                year=year,
                correlation_id=correlation_id,
            )
        return number


class InvoiceFlow:
    """
    Orchestrates the monthly invoice flow.

    Flow:
    1. Compile  -> read deliveries, price, group, tax
    2. Render   -> reject empty invoices, lay out, hand to the renderer
    3. Save     -> store the document, then record its metadata
    """

    def __init__(
        self,
        delivery_storage: DeliveryStorageInterface,
        renderer: Optional[DocumentRenderer] = None,
        archive: Optional[InvoiceArchiveInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        tables: Optional[BillingTables] = None,
        company: Optional[PartyDetails] = None,
        customer: Optional[PartyDetails] = None,
    ):
        self._delivery_storage = delivery_storage
        self._renderer = renderer
        self._archive = archive
        self._audit_logger = audit_logger
        self._tables = tables or default_billing_tables()
        self._company = company
        self._customer = customer

    async def compile(
        self,
        month: str,
        category: Union[str, InvoiceCategory],
        rate_table: Optional[Mapping[Any, Any]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> CompiledInvoice:
        """
        Compile the invoice for a month and category.

        Raises:
            StorageError: If deliveries cannot be read
        """
        correlation_id = correlation_id or create_correlation_id()
        records = await self._delivery_storage.list_deliveries()

        invoice = compile_invoice(
            records,
            month,
            category,
            rate_table=rate_table,
            tables=self._tables,
        )

        if self._audit_logger:
            await self._audit_logger.log_invoice_compiled(
                month=invoice.month,
                category=invoice.category.value,
                grand_total=invoice.grand_total,
                group_count=len(invoice.rows),
                correlation_id=correlation_id,
            )
            if invoice.has_configuration_gaps:
                await self._audit_logger.log_invoice_rate_missing(
                    month=invoice.month,
                    category=invoice.category.value,
                    materials=invoice.configuration_gaps,
                    correlation_id=correlation_id,
                )

        return invoice

    async def render_invoice(
        self,
        invoice: CompiledInvoice,
        invoice_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[bytes, str]:
        """
        Render a compiled invoice.

        Returns:
            (document bytes, suggested filename)

        Raises:
            EmptyInvoiceError: The invoice has no entries
            RenderingError: No renderer configured, or rendering failed
        """
        correlation_id = correlation_id or create_correlation_id()

        if invoice.is_empty:
            if self._audit_logger:
                await self._audit_logger.log_invoice_empty(
                    month=invoice.month,
                    category=invoice.category.value,
                    correlation_id=correlation_id,
                )
            raise EmptyInvoiceError(invoice.month, invoice.category.value)

        if self._renderer is None:
            raise RenderingError("No document renderer configured")

        layout = build_invoice_layout(
            invoice,
            company=self._company,
            customer=self._customer,
            invoice_date=invoice_date,
        )

        try:
            document = await self._renderer.render(layout)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="renderer",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_invoice_rendered(
                filename=document.filename,
                size_bytes=document.size_bytes,
                correlation_id=correlation_id,
            )
        return document.content, document.filename

    async def save_invoice(
        self,
        invoice: CompiledInvoice,
        content: bytes,
        filename: str,
        correlation_id: Optional[UUID] = None,
    ) -> GeneratedInvoice:
        """
        Archive a rendered invoice and record it in the invoice history.

        Raises:
            StorageError: Archive not configured, or a write failed
        """
        correlation_id = correlation_id or create_correlation_id()
        if self._archive is None:
            raise StorageError("No invoice archive configured")

        file_url = await self._archive.store_document(
            RenderedDocument(content=content, filename=filename)
        )
        generated = GeneratedInvoice(
            month=invoice.month,
            category=invoice.category,
            total_amount=invoice.grand_total,
            file_url=file_url,
        )
        await self._archive.save_invoice(generated)

        if self._audit_logger:
            await self._audit_logger.log_invoice_saved(
                invoice_id=generated.id,
                file_url=file_url,
                total_amount=generated.total_amount,
                correlation_id=correlation_id,
            )
        return generated

    async def generate_invoice(
        self,
        month: str,
        category: Union[str, InvoiceCategory],
        rate_table: Optional[Mapping[Any, Any]] = None,
        invoice_date: Optional[date] = None,
    ) -> GeneratedInvoice:
        """Compile, render and archive in one go, under one correlation ID."""
        correlation_id = create_correlation_id()
        invoice = await self.compile(month, category, rate_table, correlation_id)
        content, filename = await self.render_invoice(invoice, invoice_date, correlation_id)
        return await self.save_invoice(invoice, content, filename, correlation_id)

    async def list_invoices(self) -> list[GeneratedInvoice]:
        if self._archive is None:
            return []
        return await self._archive.list_invoices()


class LedgerFlow:
    """
    Orchestrates the client ledger.

    Flow:
    1. Upload  -> decode the file, build a preview (nothing stored)
    2. Review  -> user inspects rows and skipped rows (PAUSE)
    3. Commit  -> ADMIN confirms; the stored ledger is replaced

    Commit (step 3) is NEVER automatic.
    """

    def __init__(
        self,
        ledger_storage: LedgerStorageInterface,
        importer: Optional[LedgerImporter] = None,
        renderer: Optional[DocumentRenderer] = None,
        audit_logger: Optional[AuditLogger] = None,
        max_upload_bytes: Optional[int] = None,
        client_name: str = "Arihant Superstructures Ltd",
    ):
        self._ledger_storage = ledger_storage
        self._importer = importer or LedgerImporter(ledger_storage)
        self._renderer = renderer
        self._audit_logger = audit_logger
        self._max_upload_bytes = max_upload_bytes
        self._client_name = client_name

    async def preview_upload(
        self,
        content: bytes,
        filename: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerImportPreview:
        """
        Decode and normalize an uploaded ledger file.

        Raises:
            ImportValidationError: Unreadable file, too large, or no usable rows
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            if self._max_upload_bytes is not None and len(content) > self._max_upload_bytes:
                raise ImportValidationError(
                    f"{filename} is {len(content)} bytes; the limit is {self._max_upload_bytes}"
                )
            try:
                table = decode_table(content, filename)
            except TableDecodeError as e:
                raise ImportValidationError(str(e)) from e
            preview = self._importer.preview(table, source_filename=filename)
        except ImportValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_ledger_import_rejected(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_ledger_import_previewed(
                import_id=preview.import_id,
                row_count=preview.row_count,
                skipped_count=len(preview.skipped_rows),
                correlation_id=correlation_id,
            )
        return preview

    async def commit(
        self,
        preview: LedgerImportPreview,
        role: UserRole,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Replace the stored ledger with a previewed import.

        CRITICAL: Call this ONLY after explicit user confirmation.

        Raises:
            PermissionDeniedError, CommitFailedError, PartialCommitFailure,
            LedgerSwapIncompleteError
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            committed = await self._importer.commit(preview, role, actor=actor)
        except PermissionDeniedError:
            if self._audit_logger:
                await self._audit_logger.log_permission_denied(
                    operation="ledger_import_commit",
                    actor=actor,
                    role=UserRole(role).value,
                    correlation_id=correlation_id,
                )
            raise
        except PartialCommitFailure as e:
            if self._audit_logger:
                await self._audit_logger.log_ledger_import_partial(
                    import_id=preview.import_id,
                    failed_batch=e.failed_batch,
                    committed_rows=e.committed_rows,
                    total_rows=e.total_rows,
                    error_message=str(e),
                    actor=actor,
                    correlation_id=correlation_id,
                )
            raise
        except LedgerSwapIncompleteError as e:
            if self._audit_logger:
                await self._audit_logger.log_ledger_swap_incomplete(
                    import_id=preview.import_id,
                    retired_sheet=e.retired_sheet,
                    staged_sheet=e.staged_sheet,
                    error_message=str(e),
                    actor=actor,
                    correlation_id=correlation_id,
                )
            raise
        except CommitFailedError as e:
            if self._audit_logger:
                await self._audit_logger.log_ledger_import_failed(
                    import_id=preview.import_id,
                    error_message=str(e),
                    actor=actor,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_ledger_import_committed(
                import_id=preview.import_id,
                row_count=committed,
                actor=actor,
                correlation_id=correlation_id,
            )
        return committed

    async def statement(self, ledger_filter: Optional[LedgerFilter] = None) -> LedgerStatement:
        rows = await self._ledger_storage.list_rows()
        return build_statement(rows, ledger_filter)

    async def render_statement(
        self,
        period_label: str,
        ledger_filter: Optional[LedgerFilter] = None,
    ) -> tuple[bytes, str]:
        """
        Render the (filtered) ledger statement.

        Returns:
            (document bytes, suggested filename)
        """
        if self._renderer is None:
            raise RenderingError("No document renderer configured")
        statement = await self.statement(ledger_filter)
        layout = build_ledger_layout(
            statement.rows,
            period_label,
            client_name=self._client_name,
        )
        document = await self._renderer.render(layout)
        return document.content, document.filename


def create_app_components(
    use_storage: bool = True,
    renderer: Optional[DocumentRenderer] = None,
) -> tuple[NumberingFlow, InvoiceFlow, LedgerFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on in-memory storage.
        renderer: Document renderer for invoices and statements

    Returns:
        (numbering_flow, invoice_flow, ledger_flow, sheets_client)
    """
    settings = get_settings()
    sheets_client = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            delivery_storage = GoogleSheetsDeliveryStorage(sheets_client)
            ledger_storage = GoogleSheetsLedgerStorage(sheets_client)
            archive = GoogleSheetsInvoiceArchive(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            use_storage = False
            sheets_client = None

    if not use_storage:
        delivery_storage = InMemoryDeliveryStorage()
        ledger_storage = InMemoryLedgerStorage()
        archive = InMemoryInvoiceArchive()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    numbering_flow = NumberingFlow(
        delivery_storage,
        audit_logger=audit_logger,
        scheme=settings.numbering.scheme,
        width=settings.numbering.width,
    )

    invoice_flow = InvoiceFlow(
        delivery_storage,
        renderer=renderer,
        archive=archive,
        audit_logger=audit_logger,
    )

    ledger_settings = settings.ledger
    ledger_flow = LedgerFlow(
        ledger_storage,
        importer=LedgerImporter(
            ledger_storage,
            batch_size=ledger_settings.batch_size,
            strict_dates=ledger_settings.strict_dates,
            dayfirst=ledger_settings.dayfirst,
        ),
        renderer=renderer,
        audit_logger=audit_logger,
        max_upload_bytes=settings.app.max_upload_size_bytes,
        client_name=ledger_settings.client_name,
    )

    return numbering_flow, invoice_flow, ledger_flow, sheets_client
