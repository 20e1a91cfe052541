"""Tests for StatusReporter health snapshots."""
from datetime import datetime, timedelta

from todosync.models.sync import EntityType, SyncOperation
from todosync.store import TodoStore
from todosync.sync.ledger import SyncLedger
from todosync.sync.status import StatusReporter

NOW = datetime(2025, 1, 15, 12, 0)


class TestStatus:
    def test_empty_log(self, engine):
        status = StatusReporter(engine).status(now=NOW)
        assert status.last_successful_sync is None
        assert status.failed_sync_count == 0
        assert status.is_healthy is True
        assert status.recent_errors == []

    def test_recent_failure_and_earlier_success(self, engine):
        ledger = SyncLedger(engine)
        success = ledger.append_log(
            EntityType.LIST, 1, SyncOperation.CREATE, success=True,
            timestamp=NOW - timedelta(minutes=10),
        )
        ledger.append_log(
            EntityType.LIST, 2, SyncOperation.UPDATE, success=False,
            error_message="Connection failed", timestamp=NOW - timedelta(minutes=5),
        )

        status = StatusReporter(engine).status(now=NOW)

        assert status.last_successful_sync == success.timestamp
        assert status.failed_sync_count >= 1
        assert [e.message for e in status.recent_errors] == ["Connection failed"]
        assert status.recent_errors[0].entity_id == 2
        assert status.recent_errors[0].operation == SyncOperation.UPDATE

    def test_failures_outside_window_ignored(self, engine):
        SyncLedger(engine).append_log(
            EntityType.ITEM, 3, SyncOperation.CREATE, success=False,
            error_message="old", timestamp=NOW - timedelta(hours=25),
        )
        status = StatusReporter(engine).status(now=NOW)
        assert status.failed_sync_count == 0

    def test_zero_threshold_is_respected(self, engine):
        # With no tolerance, even a clean log reports unhealthy
        reporter = StatusReporter(engine, failure_threshold=0)
        assert reporter.failure_threshold == 0
        assert reporter.status(now=NOW).is_healthy is False

    def test_unhealthy_at_threshold(self, engine):
        ledger = SyncLedger(engine)
        for i in range(3):
            ledger.append_log(
                EntityType.ITEM, i, SyncOperation.CREATE, success=False,
                timestamp=NOW - timedelta(minutes=i),
            )
        assert StatusReporter(engine, failure_threshold=4).status(now=NOW).is_healthy
        assert not StatusReporter(engine, failure_threshold=3).status(now=NOW).is_healthy

    def test_missing_message_reported_as_unknown(self, engine):
        SyncLedger(engine).append_log(
            EntityType.ITEM, 9, SyncOperation.CREATE, success=False, timestamp=NOW
        )
        status = StatusReporter(engine).status(now=NOW)
        assert status.recent_errors[0].message == "Unknown error"

    def test_recent_errors_limited_to_recent_entries(self, engine):
        ledger = SyncLedger(engine)
        ledger.append_log(
            EntityType.LIST, 1, SyncOperation.CREATE, success=False,
            error_message="older", timestamp=NOW - timedelta(minutes=3),
        )
        for minutes in (2, 1):
            ledger.append_log(
                EntityType.LIST, 2, SyncOperation.UPDATE, success=True,
                timestamp=NOW - timedelta(minutes=minutes),
            )
        status = StatusReporter(engine, recent_limit=2).status(now=NOW)
        assert status.recent_errors == []
        assert status.failed_sync_count == 1


class TestPendingCount:
    def test_unmapped_entities_are_pending(self, engine):
        store = TodoStore(engine)
        todo_list = store.create_list("Chores")
        store.create_item(todo_list.id, "Sweep")
        assert StatusReporter(engine).pending_count() == 2

    def test_clean_mapping_not_pending(self, engine):
        store = TodoStore(engine)
        ledger = SyncLedger(engine)
        todo_list = store.create_list("Chores", updated_at=NOW - timedelta(days=1))
        item = store.create_item(todo_list.id, "Sweep", updated_at=NOW)
        ledger.add_mapping(EntityType.LIST, todo_list.id, 100, NOW)
        ledger.add_mapping(EntityType.ITEM, item.id, 500, NOW - timedelta(hours=1))

        # The item changed after its mark, the list did not
        assert StatusReporter(engine).pending_count() == 1
        assert StatusReporter(engine).status(now=NOW).pending_sync_count == 1
