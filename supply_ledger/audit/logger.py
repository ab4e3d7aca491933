"""
Audit Logger

DESIGN DECISION: Every action with money attached is logged.
This provides:
1. Traceability of every challan number and invoice handed out
2. A record of who replaced the client ledger, and whether it completed
3. Debugging capability

The audit logger:
- Is async so it can persist through the storage interface
- Gracefully handles failures (doesn't crash the flow if logging fails)
- Supports correlation IDs to trace related events (preview -> commit)
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from supply_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from supply_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("supply_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    # --- Numbering ---

    async def log_challan_allocated(
        self,
        challan_number: str,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.challan_allocated(
            challan_number=challan_number,
            year=year,
            correlation_id=correlation_id,
        ))

    async def log_challan_fallback(
        self,
        challan_number: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that the record store was unreadable and a fallback number was used."""
        await self.log(AuditEventBuilder.challan_fallback(
            challan_number=challan_number,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    # --- Invoicing ---

    async def log_invoice_compiled(
        self,
        month: str,
        category: str,
        grand_total: Decimal,
        group_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.invoice_compiled(
            month=month,
            category=category,
            grand_total=str(grand_total),
            group_count=group_count,
            correlation_id=correlation_id,
        ))

    async def log_invoice_rate_missing(
        self,
        month: str,
        category: str,
        materials: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.invoice_rate_missing(
            month=month,
            category=category,
            materials=materials,
            correlation_id=correlation_id,
        ))

    async def log_invoice_empty(
        self,
        month: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.invoice_empty(
            month=month,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_invoice_rendered(
        self,
        filename: str,
        size_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.invoice_rendered(
            filename=filename,
            size_bytes=size_bytes,
            correlation_id=correlation_id,
        ))

    async def log_invoice_saved(
        self,
        invoice_id: UUID,
        file_url: str,
        total_amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.invoice_saved(
            invoice_id=invoice_id,
            file_url=file_url,
            total_amount=str(total_amount),
            correlation_id=correlation_id,
        ))

    # --- Ledger import ---

    async def log_ledger_import_previewed(
        self,
        import_id: UUID,
        row_count: int,
        skipped_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_import_previewed(
            import_id=import_id,
            row_count=row_count,
            skipped_count=skipped_count,
            correlation_id=correlation_id,
        ))

    async def log_ledger_import_rejected(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_import_rejected(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_ledger_import_committed(
        self,
        import_id: UUID,
        row_count: int,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_import_committed(
            import_id=import_id,
            row_count=row_count,
            actor=actor,
            correlation_id=correlation_id,
        ))

    async def log_ledger_import_failed(
        self,
        import_id: UUID,
        error_message: str,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an import that failed with the previous ledger still intact."""
        await self.log(AuditEventBuilder.ledger_import_failed(
            import_id=import_id,
            error_message=error_message,
            actor=actor,
            correlation_id=correlation_id,
        ))

    async def log_ledger_import_partial(
        self,
        import_id: UUID,
        failed_batch: int,
        committed_rows: int,
        total_rows: int,
        error_message: str,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an import that failed after the previous ledger was deleted."""
        await self.log(AuditEventBuilder.ledger_import_partial(
            import_id=import_id,
            failed_batch=failed_batch,
            committed_rows=committed_rows,
            total_rows=total_rows,
            error_message=error_message,
            actor=actor,
            correlation_id=correlation_id,
        ))

    async def log_ledger_swap_incomplete(
        self,
        import_id: UUID,
        retired_sheet: str,
        staged_sheet: str,
        error_message: str,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a staged swap that left no sheet under the ledger title."""
        await self.log(AuditEventBuilder.ledger_swap_incomplete(
            import_id=import_id,
            retired_sheet=retired_sheet,
            staged_sheet=staged_sheet,
            error_message=error_message,
            actor=actor,
            correlation_id=correlation_id,
        ))

    # --- Access and errors ---

    async def log_permission_denied(
        self,
        operation: str,
        actor: Optional[str],
        role: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.permission_denied(
            operation=operation,
            actor=actor,
            role=role,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a ledger upload).
    Pass it through all subsequent operations.
    """
    return uuid4()
