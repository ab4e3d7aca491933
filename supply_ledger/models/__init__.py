"""
Data Models Package

This package contains all Pydantic models used in the Supply Ledger engine.
All data flowing through the system must conform to these schemas.
"""

from supply_ledger.models.records import (
    ColumnMapping,
    CompiledInvoice,
    DeliveryRecord,
    GeneratedInvoice,
    GroupedInvoiceRow,
    InvoiceCategory,
    InvoiceLineItem,
    LedgerClassification,
    LedgerImportPreview,
    LedgerRow,
    MaterialType,
    SkipReason,
    SkippedRow,
    TaxBreakdown,
    UserRole,
    classify_particulars,
    round_whole,
    to_decimal,
)
from supply_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "ColumnMapping",
    "CompiledInvoice",
    "DeliveryRecord",
    "GeneratedInvoice",
    "GroupedInvoiceRow",
    "InvoiceCategory",
    "InvoiceLineItem",
    "LedgerClassification",
    "LedgerImportPreview",
    "LedgerRow",
    "MaterialType",
    "SkipReason",
    "SkippedRow",
    "TaxBreakdown",
    "UserRole",
    "classify_particulars",
    "round_whole",
    "to_decimal",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
