"""Tests for SyncLedger: mapping uniqueness, mark advancement, log queries."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from todosync.models.sync import EntityType, SyncOperation
from todosync.sync.ledger import SyncLedger

T0 = datetime(2025, 1, 15, 7, 0)


@pytest.fixture
def ledger(engine):
    return SyncLedger(engine)


class TestMappings:
    def test_add_and_find_both_ways(self, ledger):
        created = ledger.add_mapping(EntityType.LIST, 1, 100, T0)
        assert ledger.find_by_local(EntityType.LIST, 1).id == created.id
        assert ledger.find_by_remote(EntityType.LIST, 100).id == created.id

    def test_lookup_is_per_entity_type(self, ledger):
        ledger.add_mapping(EntityType.LIST, 1, 100, T0)
        assert ledger.find_by_local(EntityType.ITEM, 1) is None
        # Same ids under the other type are a separate pair
        ledger.add_mapping(EntityType.ITEM, 1, 100, T0)

    def test_duplicate_local_id_rejected(self, ledger):
        ledger.add_mapping(EntityType.LIST, 1, 100, T0)
        with pytest.raises(IntegrityError):
            ledger.add_mapping(EntityType.LIST, 1, 101, T0)

    def test_duplicate_remote_id_rejected(self, ledger):
        ledger.add_mapping(EntityType.ITEM, 1, 100, T0)
        with pytest.raises(IntegrityError):
            ledger.add_mapping(EntityType.ITEM, 2, 100, T0)

    def test_one_sided_rows_may_share_null(self, ledger):
        ledger.add_mapping(EntityType.LIST, 1, None, T0)
        ledger.add_mapping(EntityType.LIST, 2, None, T0)
        ledger.add_mapping(EntityType.LIST, None, 300, T0)
        assert set(ledger.mappings_by_local(EntityType.LIST)) == {1, 2}
        assert set(ledger.mappings_by_remote(EntityType.LIST)) == {300}

    def test_complete_mappings_need_both_ids(self, ledger):
        ledger.add_mapping(EntityType.LIST, 1, 100, T0)
        ledger.add_mapping(EntityType.LIST, 2, None, T0)
        ledger.add_mapping(EntityType.LIST, 3, 300, T0)
        complete = ledger.complete_mappings(EntityType.LIST)
        assert [(m.local_id, m.remote_id) for m in complete] == [(1, 100), (3, 300)]

    def test_mark_synced_advances(self, ledger):
        mapping = ledger.add_mapping(EntityType.LIST, 1, 100, T0)
        later = T0 + timedelta(hours=2)
        ledger.mark_synced(mapping.id, later)
        assert ledger.find_by_local(EntityType.LIST, 1).last_synced_at == later

    def test_mark_synced_unknown_mapping(self, ledger):
        with pytest.raises(LookupError):
            ledger.mark_synced(999, T0)


class TestLog:
    def test_append_truncates_long_message(self, ledger):
        entry = ledger.append_log(
            EntityType.ITEM, 5, SyncOperation.UPDATE, success=False, error_message="x" * 5000
        )
        assert len(entry.error_message) == 2000

    def test_recent_logs_newest_first(self, ledger):
        for minutes in (30, 10, 20):
            ledger.append_log(
                EntityType.LIST,
                minutes,
                SyncOperation.CREATE,
                success=True,
                timestamp=T0 + timedelta(minutes=minutes),
            )
        assert [log.entity_id for log in ledger.recent_logs(2)] == [30, 20]

    def test_recent_logs_filtered_by_outcome(self, ledger):
        ledger.append_log(EntityType.LIST, 1, SyncOperation.CREATE, success=True, timestamp=T0)
        ledger.append_log(
            EntityType.LIST, 2, SyncOperation.CREATE, success=False,
            error_message="boom", timestamp=T0,
        )
        failures = ledger.recent_logs(success=False)
        assert [log.entity_id for log in failures] == [2]

    def test_count_logs_since(self, ledger):
        ledger.append_log(
            EntityType.LIST, 1, SyncOperation.CREATE, success=False,
            timestamp=T0 - timedelta(days=2),
        )
        ledger.append_log(EntityType.LIST, 2, SyncOperation.CREATE, success=False, timestamp=T0)
        ledger.append_log(EntityType.LIST, 3, SyncOperation.CREATE, success=True, timestamp=T0)
        assert ledger.count_logs(success=False) == 2
        assert ledger.count_logs(success=False, since=T0 - timedelta(days=1)) == 1
        assert ledger.count_logs(success=True) == 1
