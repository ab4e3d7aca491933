"""Tests for the audit logger."""

from uuid import uuid4

from supply_ledger.audit import AuditLogger, create_correlation_id
from supply_ledger.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from supply_ledger.services.storage import AuditStorageInterface, InMemoryAuditStorage

from tests.conftest import run


def _any_event():
    return AuditEventBuilder.system_error(error_type="Test", error_message="boom")


class BrokenAuditStorage(AuditStorageInterface):

    async def append_event(self, event):
        raise RuntimeError("sheet offline")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_persists_events(self):
        """Test events reach the storage backend."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        run(logger.log_challan_allocated("JME/2025/001", 2025, correlation_id=correlation_id))
        run(logger.log_ledger_import_rejected("bad file", correlation_id=correlation_id))

        events = run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [
            AuditEventType.CHALLAN_NUMBER_ALLOCATED,
            AuditEventType.LEDGER_IMPORT_REJECTED,
        ]

    def test_storage_failure_does_not_raise(self):
        """Test a failing backend is reported, not raised."""
        logger = AuditLogger(BrokenAuditStorage())
        event_id = uuid4()
        run(logger.log_ledger_import_committed(event_id, 10, actor="owner"))
        assert run(logger.log(_any_event())) is False

    def test_without_storage(self):
        """Test local-only logging succeeds."""
        assert run(AuditLogger().log(_any_event())) is True

    def test_decimal_details_are_strings(self):
        """Test money in event details is stored as text."""
        storage = InMemoryAuditStorage()
        run(AuditLogger(storage).log_invoice_compiled("2025-11", "Machinery", 4720, 1))
        event = storage.events[0]
        assert event.details["grand_total"] == "4720"
        assert event.severity == AuditSeverity.INFO

    def test_recent_events_limit(self):
        """Test recent events are capped."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        for year in range(2020, 2025):
            run(logger.log_challan_allocated(f"JME/{year}/001", year))
        assert len(run(storage.get_recent_events(limit=3))) == 3
