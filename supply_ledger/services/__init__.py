"""Services package: storage backends, rendering interface and file decoding."""

from supply_ledger.services.rendering import (
    DocumentLayout,
    DocumentRenderer,
    RenderedDocument,
    RenderingError,
)
from supply_ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DeliveryStorageInterface,
    InvoiceArchiveInterface,
    LedgerStorageInterface,
    NotFoundError,
    SchemaNotConfiguredError,
    StorageError,
)
from supply_ledger.services.tabular import TableDecodeError, decode_table

__all__ = [
    # Rendering
    "DocumentLayout",
    "DocumentRenderer",
    "RenderedDocument",
    "RenderingError",
    # Storage
    "AuditStorageInterface",
    "ConnectionError",
    "DeliveryStorageInterface",
    "InvoiceArchiveInterface",
    "LedgerStorageInterface",
    "NotFoundError",
    "SchemaNotConfiguredError",
    "StorageError",
    # Tabular files
    "TableDecodeError",
    "decode_table",
]
