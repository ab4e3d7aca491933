"""
In-memory storage backends.

Used by the test suite and for running the flows without Google Sheets.
The ledger store can simulate failures at a chosen point so commit
behavior can be exercised without a flaky network.
"""

from copy import deepcopy
from typing import Optional, Sequence
from uuid import UUID

from supply_ledger.models.audit import AuditEvent
from supply_ledger.models.records import DeliveryRecord, GeneratedInvoice, LedgerRow
from supply_ledger.services.rendering.interface import RenderedDocument
from supply_ledger.services.storage.interface import (
    AuditStorageInterface,
    DeliveryStorageInterface,
    InvoiceArchiveInterface,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


class InMemoryDeliveryStorage(DeliveryStorageInterface):

    def __init__(self, records: Optional[Sequence[DeliveryRecord]] = None):
        self.records: list[DeliveryRecord] = list(records or [])
        self.fail_reads = False

    async def list_deliveries(self) -> list[DeliveryRecord]:
        if self.fail_reads:
            raise StorageError("Delivery store unavailable")
        return deepcopy(self.records)

    async def save_delivery(self, record: DeliveryRecord) -> bool:
        self.records.append(record)
        return True

    async def update_delivery(self, record: DeliveryRecord) -> bool:
        for index, existing in enumerate(self.records):
            if existing.id == record.id:
                self.records[index] = record
                return True
        raise NotFoundError(f"Delivery not found: {record.id}")

    async def delete_delivery(self, record_id: UUID) -> bool:
        before = len(self.records)
        self.records = [r for r in self.records if r.id != record_id]
        return len(self.records) < before


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Ledger store held in a list.

    Args:
        rows: Initial live rows
        staging: Whether to advertise shadow-copy staging
        fail_on_batch: 1-based batch number whose write raises StorageError
        fail_on_delete: Make delete_all raise StorageError
        fail_on_swap: Make swap_staged raise StorageError
    """

    def __init__(
        self,
        rows: Optional[Sequence[LedgerRow]] = None,
        staging: bool = False,
        fail_on_batch: Optional[int] = None,
        fail_on_delete: bool = False,
        fail_on_swap: bool = False,
    ):
        self.rows: list[LedgerRow] = list(rows or [])
        self.staged: Optional[list[LedgerRow]] = None
        self._staging = staging
        self.fail_on_batch = fail_on_batch
        self.fail_on_delete = fail_on_delete
        self.fail_on_swap = fail_on_swap
        self.batch_calls = 0

    def _count_batch(self) -> None:
        self.batch_calls += 1
        if self.fail_on_batch == self.batch_calls:
            raise StorageError(f"Simulated failure on batch {self.batch_calls}")

    async def list_rows(self) -> list[LedgerRow]:
        return deepcopy(self.rows)

    async def delete_all(self) -> int:
        if self.fail_on_delete:
            raise StorageError("Simulated delete failure")
        count = len(self.rows)
        self.rows = []
        return count

    async def insert_batch(self, rows: Sequence[LedgerRow]) -> int:
        self._count_batch()
        self.rows.extend(rows)
        return len(rows)

    @property
    def supports_staging(self) -> bool:
        return self._staging

    async def stage_batch(self, rows: Sequence[LedgerRow]) -> int:
        if not self._staging:
            return await super().stage_batch(rows)
        self._count_batch()
        if self.staged is None:
            self.staged = []
        self.staged.extend(rows)
        return len(rows)

    async def swap_staged(self) -> int:
        if not self._staging:
            return await super().swap_staged()
        if self.fail_on_swap:
            raise StorageError("Simulated swap failure")
        if self.staged is None:
            raise StorageError("No staged ledger to swap in")
        self.rows, self.staged = self.staged, None
        return len(self.rows)

    async def discard_staged(self) -> None:
        if not self._staging:
            return await super().discard_staged()
        self.staged = None


class InMemoryInvoiceArchive(InvoiceArchiveInterface):

    def __init__(self):
        self.documents: dict[str, bytes] = {}
        self.invoices: list[GeneratedInvoice] = []

    async def store_document(self, document: RenderedDocument) -> str:
        self.documents[document.filename] = document.content
        return f"memory://invoices/{document.filename}"

    async def save_invoice(self, invoice: GeneratedInvoice) -> bool:
        self.invoices.append(invoice)
        return True

    async def list_invoices(self) -> list[GeneratedInvoice]:
        return sorted(self.invoices, key=lambda i: i.created_at, reverse=True)


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return sorted(
            (e for e in self.events if e.correlation_id == correlation_id),
            key=lambda e: e.timestamp,
        )

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
