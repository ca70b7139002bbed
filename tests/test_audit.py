"""Tests for the audit logger."""

import pytest
from uuid import UUID

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.models.audit import AuditEventBuilder, AuditEventType


class TestAuditLogger:

    @pytest.mark.asyncio
    async def test_log_keeps_history(self):
        logger = AuditLogger()
        event = AuditEventBuilder.data_synced(2, 1, create_correlation_id())

        assert await logger.log(event) is True
        assert logger.history == [event]

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        logger = AuditLogger(history_size=3)
        for index in range(5):
            await logger.log(AuditEventBuilder.recurring_expense_deleted(index, create_correlation_id()))

        assert [event.entity_id for event in logger.history] == ["2", "3", "4"]

    @pytest.mark.asyncio
    async def test_log_error(self):
        logger = AuditLogger()
        await logger.log_error("token_storage_read", "permission denied", {"path": "/tmp/x"})

        event = logger.history[-1]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "permission denied"
        assert event.details == {"path": "/tmp/x"}

    @pytest.mark.asyncio
    async def test_recent_filters_by_type(self):
        logger = AuditLogger()
        correlation_id = create_correlation_id()
        await logger.log(AuditEventBuilder.expense_deleted(1, [], correlation_id))
        await logger.log(AuditEventBuilder.sync_failed("boom", correlation_id))
        await logger.log(AuditEventBuilder.expense_deleted(2, [5], correlation_id))

        deleted = logger.recent(AuditEventType.EXPENSE_DELETED)

        assert [event.entity_id for event in deleted] == ["2", "1"]
        assert logger.recent()[0].entity_id == "2"

    def test_correlation_ids_are_unique(self):
        first = create_correlation_id()
        assert isinstance(first, UUID)
        assert first != create_correlation_id()
