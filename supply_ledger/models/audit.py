"""
Audit Models for Supply Ledger

Every action with financial consequences is logged for audit purposes:
challan numbers handed out, invoices compiled and saved, ledger imports
previewed, committed or failed.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Numbering
    CHALLAN_NUMBER_ALLOCATED = "challan_number_allocated"
    CHALLAN_NUMBER_FALLBACK = "challan_number_fallback"

    # Invoicing
    INVOICE_COMPILED = "invoice_compiled"
    INVOICE_RATE_MISSING = "invoice_rate_missing"
    INVOICE_RENDERED = "invoice_rendered"
    INVOICE_SAVED = "invoice_saved"
    INVOICE_EMPTY = "invoice_empty"

    # Ledger import
    LEDGER_IMPORT_PREVIEWED = "ledger_import_previewed"
    LEDGER_IMPORT_REJECTED = "ledger_import_rejected"
    LEDGER_IMPORT_COMMITTED = "ledger_import_committed"
    LEDGER_IMPORT_FAILED = "ledger_import_failed"
    LEDGER_IMPORT_PARTIAL = "ledger_import_partial"
    LEDGER_SWAP_INCOMPLETE = "ledger_swap_incomplete"

    # Access
    PERMISSION_DENIED = "permission_denied"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'challan', 'invoice', 'ledger_import')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., preview and commit of one import)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    actor: Optional[str] = Field(
        default=None,
        description="User who triggered the event, if any"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "actor": self.actor,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, actor]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            self.actor or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.challan_allocated("JME/2025/004", 2025)
        event = AuditEventBuilder.ledger_import_committed(import_id, 250, correlation_id)
    """

    @staticmethod
    def challan_allocated(
        challan_number: str,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHALLAN_NUMBER_ALLOCATED,
            entity_type="challan",
            correlation_id=correlation_id,
            description=f"Challan number allocated: {challan_number}",
            details={
                "challan_number": challan_number,
                "year": year,
            },
        )

    @staticmethod
    def challan_fallback(
        challan_number: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHALLAN_NUMBER_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="challan",
            correlation_id=correlation_id,
            description=f"Record store unreadable, fell back to {challan_number}",
            details={"challan_number": challan_number},
            error_message=error_message,
        )

    @staticmethod
    def invoice_compiled(
        month: str,
        category: str,
        grand_total: str,
        group_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_COMPILED,
            entity_type="invoice",
            correlation_id=correlation_id,
            description=f"Invoice compiled: {category} {month} - ₹{grand_total}",
            details={
                "month": month,
                "category": category,
                "grand_total": grand_total,
                "group_count": group_count,
            },
        )

    @staticmethod
    def invoice_rate_missing(
        month: str,
        category: str,
        materials: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_RATE_MISSING,
            severity=AuditSeverity.WARNING,
            entity_type="invoice",
            correlation_id=correlation_id,
            description=f"No rate configured for {len(materials)} material(s) in {category} {month}",
            details={
                "month": month,
                "category": category,
                "materials": materials,
            },
        )

    @staticmethod
    def invoice_empty(
        month: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_EMPTY,
            severity=AuditSeverity.WARNING,
            entity_type="invoice",
            correlation_id=correlation_id,
            description=f"No entries for {category} {month}; nothing rendered",
            details={"month": month, "category": category},
        )

    @staticmethod
    def invoice_rendered(
        filename: str,
        size_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_RENDERED,
            entity_type="invoice",
            correlation_id=correlation_id,
            description=f"Invoice rendered: {filename}",
            details={
                "filename": filename,
                "size_bytes": size_bytes,
            },
        )

    @staticmethod
    def invoice_saved(
        invoice_id: UUID,
        file_url: str,
        total_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_SAVED,
            entity_type="invoice",
            entity_id=invoice_id,
            correlation_id=correlation_id,
            description=f"Invoice saved to history - ₹{total_amount}",
            details={
                "file_url": file_url,
                "total_amount": total_amount,
            },
        )

    @staticmethod
    def ledger_import_previewed(
        import_id: UUID,
        row_count: int,
        skipped_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORT_PREVIEWED,
            severity=AuditSeverity.WARNING if skipped_count else AuditSeverity.INFO,
            entity_type="ledger_import",
            entity_id=import_id,
            correlation_id=correlation_id,
            description=f"Ledger upload parsed: {row_count} rows, {skipped_count} skipped",
            details={
                "row_count": row_count,
                "skipped_count": skipped_count,
            },
        )

    @staticmethod
    def ledger_import_rejected(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger_import",
            correlation_id=correlation_id,
            description="Ledger upload rejected: no usable rows",
            error_message=error_message,
        )

    @staticmethod
    def ledger_import_committed(
        import_id: UUID,
        row_count: int,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORT_COMMITTED,
            entity_type="ledger_import",
            entity_id=import_id,
            correlation_id=correlation_id,
            description=f"Client ledger replaced with {row_count} rows",
            details={"row_count": row_count},
            actor=actor,
        )

    @staticmethod
    def ledger_import_failed(
        import_id: UUID,
        error_message: str,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger_import",
            entity_id=import_id,
            correlation_id=correlation_id,
            description="Ledger import failed; previous ledger kept",
            error_message=error_message,
            actor=actor,
        )

    @staticmethod
    def ledger_import_partial(
        import_id: UUID,
        failed_batch: int,
        committed_rows: int,
        total_rows: int,
        error_message: str,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORT_PARTIAL,
            severity=AuditSeverity.CRITICAL,
            entity_type="ledger_import",
            entity_id=import_id,
            correlation_id=correlation_id,
            description=(
                f"Ledger import stopped at batch {failed_batch}: "
                f"{committed_rows}/{total_rows} rows stored, previous ledger deleted"
            ),
            details={
                "failed_batch": failed_batch,
                "committed_rows": committed_rows,
                "total_rows": total_rows,
            },
            error_message=error_message,
            actor=actor,
        )

    @staticmethod
    def ledger_swap_incomplete(
        import_id: UUID,
        retired_sheet: str,
        staged_sheet: str,
        error_message: str,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SWAP_INCOMPLETE,
            severity=AuditSeverity.CRITICAL,
            entity_type="ledger_import",
            entity_id=import_id,
            correlation_id=correlation_id,
            description="Ledger swap stopped halfway; no live ledger sheet",
            details={
                "retired_sheet": retired_sheet,
                "staged_sheet": staged_sheet,
            },
            error_message=error_message,
            actor=actor,
        )

    @staticmethod
    def permission_denied(
        operation: str,
        actor: Optional[str],
        role: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{operation} denied for role {role}",
            details={"operation": operation, "role": role},
            actor=actor,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
