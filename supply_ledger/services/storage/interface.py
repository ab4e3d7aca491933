"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep billing and import logic decoupled from the storage backend

The interface is intentionally simple - we're not building a full ORM.
Just the operations the numbering, invoicing and ledger flows need.
"""

from abc import ABC, abstractmethod
from typing import Sequence
from uuid import UUID

from supply_ledger.models.audit import AuditEvent
from supply_ledger.models.records import (
    DeliveryRecord,
    GeneratedInvoice,
    LedgerRow,
)
from supply_ledger.services.rendering.interface import RenderedDocument


class DeliveryStorageInterface(ABC):
    """
    Abstract interface for delivery (challan) record storage.

    The numbering and invoice flows only read; the entry workflow writes.
    """

    @abstractmethod
    async def list_deliveries(self) -> list[DeliveryRecord]:
        """
        Read every stored delivery record.

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def save_delivery(self, record: DeliveryRecord) -> bool:
        """
        Insert a delivery record.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_delivery(self, record: DeliveryRecord) -> bool:
        """
        Replace a stored delivery record (matched by id).

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass

    @abstractmethod
    async def delete_delivery(self, record_id: UUID) -> bool:
        """
        Delete a delivery record by ID.

        Returns:
            True if a record was deleted, False if none matched
        """
        pass


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the client ledger.

    The ledger is only ever replaced wholesale by an import. Backends that
    can build a shadow copy and swap it in atomically advertise it through
    supports_staging; the importer then never deletes live data before the
    replacement is complete.
    """

    @abstractmethod
    async def list_rows(self) -> list[LedgerRow]:
        """Read every stored ledger row in stored order."""
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        """
        Delete the entire ledger.

        Returns:
            Number of rows deleted
        """
        pass

    @abstractmethod
    async def insert_batch(self, rows: Sequence[LedgerRow]) -> int:
        """
        Append one batch of rows to the live ledger.

        Returns:
            Number of rows inserted
        """
        pass

    @property
    def supports_staging(self) -> bool:
        return False

    async def stage_batch(self, rows: Sequence[LedgerRow]) -> int:
        """Append one batch to the shadow ledger."""
        raise StorageError(f"{type(self).__name__} does not support staged imports")

    async def swap_staged(self) -> int:
        """
        Replace the live ledger with the shadow ledger.

        Returns:
            Number of rows now live

        Raises:
            StorageError: The swap failed and the live ledger is untouched
            IncompleteSwapError: The live ledger was renamed away and could
                not be restored
        """
        raise StorageError(f"{type(self).__name__} does not support staged imports")

    async def discard_staged(self) -> None:
        """Drop the shadow ledger, if any. Live data is untouched."""
        raise StorageError(f"{type(self).__name__} does not support staged imports")


class InvoiceArchiveInterface(ABC):
    """
    Abstract interface for generated-invoice history.

    The rendered document is stored first; its location goes into the
    metadata row.
    """

    @abstractmethod
    async def store_document(self, document: RenderedDocument) -> str:
        """
        Persist a rendered document.

        Returns:
            URL or path where the document can be fetched
        """
        pass

    @abstractmethod
    async def save_invoice(self, invoice: GeneratedInvoice) -> bool:
        """Record invoice metadata."""
        pass

    @abstractmethod
    async def list_invoices(self) -> list[GeneratedInvoice]:
        """Invoice history, newest first."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., preview and commit of one import).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class SchemaNotConfiguredError(StorageError):
    """The table/worksheet backing a dataset does not exist."""
    pass


class IncompleteSwapError(StorageError):
    """A staged swap left the live dataset renamed away and unrestored."""

    def __init__(self, message: str, retired_sheet: str, staged_sheet: str):
        super().__init__(message)
        self.retired_sheet = retired_sheet
        self.staged_sheet = staged_sheet
