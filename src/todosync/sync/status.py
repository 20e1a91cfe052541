"""Health snapshot derived from the sync log, for external polling."""
from datetime import datetime, timedelta
from typing import Optional

from todosync.config import get_settings
from todosync.sync.ledger import SyncLedger
from todosync.sync.results import SyncError, SyncStatus
from todosync.models.sync import EntityType
from todosync.store import TodoStore

FAILURE_WINDOW = timedelta(hours=24)


class StatusReporter:
    def __init__(
        self,
        engine,
        failure_threshold: Optional[int] = None,
        recent_limit: Optional[int] = None,
    ):
        settings = get_settings()
        self.ledger = SyncLedger(engine)
        self.store = TodoStore(engine)
        self.failure_threshold = (
            settings.health_failure_threshold if failure_threshold is None else failure_threshold
        )
        self.recent_limit = settings.status_recent_limit if recent_limit is None else recent_limit

    def status(self, now: Optional[datetime] = None) -> SyncStatus:
        """
        Build the current SyncStatus.

        Healthy means fewer than failure_threshold failed entries in the
        trailing 24 hours. recent_errors holds the failures among the
        recent_limit most recent entries, newest first.
        """
        now = now or datetime.utcnow()
        recent = self.ledger.recent_logs(self.recent_limit)
        last_success = self.ledger.recent_logs(1, success=True)
        failed_count = self.ledger.count_logs(success=False, since=now - FAILURE_WINDOW)

        return SyncStatus(
            last_successful_sync=last_success[0].timestamp if last_success else None,
            pending_sync_count=self.pending_count(),
            failed_sync_count=failed_count,
            is_healthy=failed_count < self.failure_threshold,
            recent_errors=[
                SyncError(
                    entity_type=log.entity_type,
                    entity_id=log.entity_id,
                    operation=log.operation,
                    message=log.error_message or "Unknown error",
                    timestamp=log.timestamp,
                )
                for log in recent
                if not log.success
            ],
        )

    def pending_count(self) -> int:
        """Local lists and items that are unmapped or changed past their mark."""
        list_mappings = self.ledger.mappings_by_local(EntityType.LIST)
        item_mappings = self.ledger.mappings_by_local(EntityType.ITEM)

        pending = 0
        for todo_list in self.store.all_lists():
            mapping = list_mappings.get(todo_list.id)
            if mapping is None or todo_list.updated_at > mapping.last_synced_at:
                pending += 1
            for item in self.store.items_for_list(todo_list.id):
                item_mapping = item_mappings.get(item.id)
                if item_mapping is None or item.updated_at > item_mapping.last_synced_at:
                    pending += 1
        return pending
