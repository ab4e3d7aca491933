"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the storage backend because:
1. The office already keeps challans and the client ledger in Sheets
2. No database setup required
3. Non-technical users can inspect and correct data directly

TRADEOFFS:
- No transactions. The ledger import therefore stages into a shadow
  worksheet and swaps it in by renaming, so live data is never deleted
  before the replacement is complete.
- Limited query capabilities (we filter in Python)

Only connection establishment is retried. Data writes are not: a retried
batch append could duplicate rows.
"""

import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Sequence
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from supply_ledger.config import get_settings
from supply_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from supply_ledger.models.records import (
    DeliveryRecord,
    GeneratedInvoice,
    InvoiceCategory,
    LedgerRow,
)
from supply_ledger.services.rendering.interface import RenderedDocument
from supply_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DeliveryStorageInterface,
    IncompleteSwapError,
    InvoiceArchiveInterface,
    LedgerStorageInterface,
    NotFoundError,
    SchemaNotConfiguredError,
    StorageError,
)

logger = structlog.get_logger(__name__)


DELIVERY_COLUMNS = [
    "id",
    "date",
    "challan_number",
    "material",
    "quantity",
    "unit",
    "vehicle_number",
    "site_name",
    "phase",
    "created_by",
    "created_at",
]

LEDGER_COLUMNS = [
    "id",
    "date",
    "particulars",
    "voucher_type",
    "voucher_number",
    "debit",
    "credit",
    "description",
    "dr_cr",
    "account_name",
]

INVOICE_COLUMNS = [
    "id",
    "month",
    "category",
    "total_amount",
    "file_url",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "actor",
]

STAGING_SUFFIX = "__staging"
RETIRED_SUFFIX = "__retired"


def _cell(row: list, index: int, default: str = "") -> str:
    """Cell value, tolerating short rows and empty cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication (with retry) and worksheet lookup.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def find_worksheet(self, title: str) -> Optional[gspread.Worksheet]:
        try:
            return self.get_spreadsheet().worksheet(title)
        except gspread.WorksheetNotFound:
            return None

    def create_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Add a worksheet with a header row."""
        sheet = self.get_spreadsheet().add_worksheet(
            title=title,
            rows=rows,
            cols=len(columns),
        )
        sheet.append_row(columns)
        return sheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """
        Get a worksheet, creating it with headers when allowed.

        Raises:
            SchemaNotConfiguredError: If it is missing and creation is disabled
        """
        sheet = self.find_worksheet(title)
        if sheet is not None:
            return sheet
        if not self._settings.create_missing_worksheets:
            raise SchemaNotConfiguredError(
                f"Worksheet '{title}' does not exist in spreadsheet "
                f"{self._settings.spreadsheet_id}"
            )
        logger.info("worksheet_created", title=title)
        return self.create_worksheet(title, columns, rows)

    def delete_worksheet(self, sheet: gspread.Worksheet) -> None:
        self.get_spreadsheet().del_worksheet(sheet)


# =============================================================================
# DELIVERIES
# =============================================================================

class GoogleSheetsDeliveryStorage(DeliveryStorageInterface):
    """
    Delivery records, one per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.deliveries_sheet_name,
            DELIVERY_COLUMNS,
        )

    def _record_to_row(self, record: DeliveryRecord) -> list:
        return [
            str(record.id),
            record.date.isoformat(),
            record.challan_number,
            record.material,
            str(record.quantity),
            record.unit,
            record.vehicle_number or "",
            record.site_name,
            record.phase or "",
            record.created_by,
            record.created_at.isoformat(),
        ]

    def _row_to_record(self, row: list) -> DeliveryRecord:
        created_at = _cell(row, 10)
        return DeliveryRecord(
            id=UUID(_cell(row, 0)),
            date=date.fromisoformat(_cell(row, 1)[:10]),
            challan_number=_cell(row, 2),
            material=_cell(row, 3),
            quantity=Decimal(_cell(row, 4, "0")),
            unit=_cell(row, 5),
            vehicle_number=_cell(row, 6) or None,
            site_name=_cell(row, 7),
            phase=_cell(row, 8) or None,
            created_by=_cell(row, 9),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.utcnow(),
        )

    async def list_deliveries(self) -> list[DeliveryRecord]:
        try:
            all_rows = self._sheet().get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read deliveries: {e}")

        records = []
        for index, row in enumerate(all_rows, start=2):
            if not row or not row[0]:
                continue
            try:
                records.append(self._row_to_record(row))
            except (ValueError, InvalidOperation) as e:
                logger.warning("delivery_row_malformed", sheet_row=index, error=str(e))
        return records

    async def save_delivery(self, record: DeliveryRecord) -> bool:
        try:
            self._sheet().append_row(self._record_to_row(record), value_input_option="RAW")
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save delivery: {e}")

    async def update_delivery(self, record: DeliveryRecord) -> bool:
        try:
            sheet = self._sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
                if row and row[0] == str(record.id):
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._record_to_row(record)],
                        value_input_option="RAW",
                    )
                    return True

            raise NotFoundError(f"Delivery not found: {record.id}")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update delivery: {e}")

    async def delete_delivery(self, record_id: UUID) -> bool:
        try:
            sheet = self._sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == str(record_id):
                    sheet.delete_rows(idx)
                    return True

            return False
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete delivery: {e}")


# =============================================================================
# CLIENT LEDGER
# =============================================================================

class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Client ledger worksheet with shadow-worksheet staging.

    An import appends its batches to "<ledger>__staging". swap_staged then
    renames the live sheet to "<ledger>__retired", renames the shadow into
    place and deletes the retired sheet.

    If the shadow rename fails the live sheet is renamed back. Only when that
    also fails is no sheet left under the ledger title (IncompleteSwapError).
    A retired sheet that cannot be deleted is logged and removed by the next
    swap.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @property
    def _title(self) -> str:
        return self._client.settings.ledger_sheet_name

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._title, LEDGER_COLUMNS, rows=5000)

    def _row_to_values(self, row: LedgerRow) -> list:
        return [
            str(row.id) if row.id else "",
            row.date,
            row.particulars,
            row.voucher_type,
            row.voucher_number,
            row.debit,
            row.credit,
            row.description or "",
            row.dr_cr or "",
            row.account_name or "",
        ]

    def _values_to_row(self, values: list) -> LedgerRow:
        return LedgerRow(
            id=UUID(_cell(values, 0)) if _cell(values, 0) else None,
            date=_cell(values, 1),
            particulars=_cell(values, 2),
            voucher_type=_cell(values, 3),
            voucher_number=_cell(values, 4),
            debit=float(_cell(values, 5, "0")),
            credit=float(_cell(values, 6, "0")),
            description=_cell(values, 7) or None,
            dr_cr=_cell(values, 8) or None,
            account_name=_cell(values, 9) or None,
        )

    async def list_rows(self) -> list[LedgerRow]:
        try:
            all_values = self._sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read ledger: {e}")

        rows = []
        for index, values in enumerate(all_values, start=2):
            if not any(values):
                continue
            try:
                rows.append(self._values_to_row(values))
            except (ValueError, InvalidOperation) as e:
                logger.warning("ledger_row_malformed", sheet_row=index, error=str(e))
        return rows

    async def delete_all(self) -> int:
        try:
            sheet = self._sheet()
            count = len(sheet.get_all_values()) - 1
            if count > 0:
                sheet.delete_rows(2, count + 1)
            return max(count, 0)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear ledger: {e}")

    async def insert_batch(self, rows: Sequence[LedgerRow]) -> int:
        try:
            self._sheet().append_rows(
                [self._row_to_values(row) for row in rows],
                value_input_option="RAW",
            )
            return len(rows)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to insert ledger batch: {e}")

    # --- Staging ---

    @property
    def supports_staging(self) -> bool:
        return True

    async def stage_batch(self, rows: Sequence[LedgerRow]) -> int:
        try:
            title = self._title + STAGING_SUFFIX
            sheet = self._client.find_worksheet(title)
            if sheet is None:
                sheet = self._client.create_worksheet(title, LEDGER_COLUMNS, rows=5000)
            sheet.append_rows(
                [self._row_to_values(row) for row in rows],
                value_input_option="RAW",
            )
            return len(rows)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to stage ledger batch: {e}")

    async def swap_staged(self) -> int:
        staging_title = self._title + STAGING_SUFFIX
        retired_title = self._title + RETIRED_SUFFIX
        try:
            staged = self._client.find_worksheet(staging_title)
            if staged is None:
                raise StorageError("No staged ledger to swap in")

            # Left behind by an earlier swap whose cleanup failed
            stale = self._client.find_worksheet(retired_title)
            if stale is not None:
                self._client.delete_worksheet(stale)

            live = self._client.find_worksheet(self._title)
            if live is not None:
                live.update_title(retired_title)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to swap staged ledger: {e}")

        try:
            staged.update_title(self._title)
        except Exception as e:
            if live is not None:
                self._restore_live(live, retired_title, staging_title, e)
            raise StorageError(f"Failed to swap staged ledger: {e}")

        if live is not None:
            try:
                self._client.delete_worksheet(live)
            except Exception as e:
                logger.warning("ledger_retired_sheet_not_deleted", sheet=retired_title, error=str(e))

        try:
            return len(staged.get_all_values()) - 1
        except Exception as e:
            raise StorageError(f"Ledger swapped in but could not be counted: {e}")

    def _restore_live(
        self,
        live: gspread.Worksheet,
        retired_title: str,
        staging_title: str,
        cause: Exception,
    ) -> None:
        """Undo the first rename of a swap, or raise IncompleteSwapError."""
        try:
            live.update_title(self._title)
            logger.warning("ledger_swap_rolled_back", error=str(cause))
        except Exception as e:
            raise IncompleteSwapError(
                f"'{self._title}' is missing: the previous ledger is in "
                f"'{retired_title}' and the new one in '{staging_title}' ({cause}; restore failed: {e})",
                retired_sheet=retired_title,
                staged_sheet=staging_title,
            ) from e

    async def discard_staged(self) -> None:
        try:
            staged = self._client.find_worksheet(self._title + STAGING_SUFFIX)
            if staged is not None:
                self._client.delete_worksheet(staged)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to discard staged ledger: {e}")


# =============================================================================
# INVOICE ARCHIVE
# =============================================================================

class GoogleSheetsInvoiceArchive(InvoiceArchiveInterface):
    """
    Invoice history in a worksheet; rendered documents in a local directory.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        document_dir: Optional[Path] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._document_dir = Path(document_dir or get_settings().app.invoice_archive_dir)

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.invoices_sheet_name,
            INVOICE_COLUMNS,
        )

    async def store_document(self, document: RenderedDocument) -> str:
        try:
            self._document_dir.mkdir(parents=True, exist_ok=True)
            path = self._document_dir / document.filename
            path.write_bytes(document.content)
            return path.resolve().as_uri()
        except OSError as e:
            raise StorageError(f"Failed to store document {document.filename}: {e}")

    async def save_invoice(self, invoice: GeneratedInvoice) -> bool:
        try:
            self._sheet().append_row(
                [
                    str(invoice.id),
                    invoice.month,
                    invoice.category.value,
                    str(invoice.total_amount),
                    invoice.file_url,
                    invoice.created_at.isoformat(),
                ],
                value_input_option="RAW",
            )
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save invoice metadata: {e}")

    async def list_invoices(self) -> list[GeneratedInvoice]:
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read invoice history: {e}")

        invoices = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                invoices.append(GeneratedInvoice(
                    id=UUID(_cell(row, 0)),
                    month=_cell(row, 1),
                    category=InvoiceCategory(_cell(row, 2)),
                    total_amount=Decimal(_cell(row, 3, "0")),
                    file_url=_cell(row, 4),
                    created_at=datetime.fromisoformat(_cell(row, 5)),
                ))
            except (ValueError, InvalidOperation) as e:
                logger.warning("invoice_row_malformed", error=str(e))

        invoices.sort(key=lambda i: i.created_at, reverse=True)
        return invoices


# =============================================================================
# AUDIT LOG
# =============================================================================

class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )

    def _row_to_event(self, row: list) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=UUID(_cell(row, 5)) if _cell(row, 5) else None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
            actor=_cell(row, 10) or None,
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, InvalidOperation):
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are logged, never raised."""
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_write_failed", event_type=event.event_type.value, error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
