"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the production backend; in-memory backends serve tests.
"""

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
from supply_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryDeliveryStorage,
    InMemoryInvoiceArchive,
    InMemoryLedgerStorage,
)
from supply_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDeliveryStorage,
    GoogleSheetsInvoiceArchive,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "DeliveryStorageInterface",
    "InvoiceArchiveInterface",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "IncompleteSwapError",
    "NotFoundError",
    "SchemaNotConfiguredError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryDeliveryStorage",
    "InMemoryInvoiceArchive",
    "InMemoryLedgerStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDeliveryStorage",
    "GoogleSheetsInvoiceArchive",
    "GoogleSheetsLedgerStorage",
]
