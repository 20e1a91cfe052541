"""
SyncOrchestrator: one full reconciliation run.

Flow for run_all():
  1. ListReconciler pull, then push
  2. For every list mapping with both ids set: ItemReconciler pull + push
  3. Fold every pass into one SyncResult

Never raises. Anything escaping the sequence becomes a failed result carrying
a single "Fatal error" message.

There is no run-level lock: a scheduled run and an on-demand run can overlap
and race on the same mapping rows.
"""
import asyncio
import logging
from typing import Optional

from todosync.models.sync import EntityType
from todosync.sync.ledger import SyncLedger
from todosync.sync.reconciler import ItemReconciler, ListReconciler, is_cancelled
from todosync.sync.results import SyncResult
from todosync.store import TodoStore

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Runs the list and item reconcilers in order and aggregates the outcome."""

    def __init__(self, client, engine):
        """
        Args:
            client: RemoteTodoClient instance (or AsyncMock in tests).
            engine: SQLAlchemy engine (SQLModel create_engine result).
        """
        self.client = client
        self.engine = engine
        self.store = TodoStore(engine)
        self.ledger = SyncLedger(engine)

    async def run_all(self, cancel: Optional[asyncio.Event] = None) -> SyncResult:
        """
        Reconcile all lists, then the items of every mapped list.

        Args:
            cancel: Optional event; once set, each loop stops before its next
                entity and a partial result is returned.

        Returns:
            The aggregated SyncResult. success is True iff no errors occurred.
        """
        result = SyncResult()
        logger.info("Starting full synchronization")

        try:
            lists = ListReconciler(self.client, self.store, self.ledger)
            result.merge(await lists.run(cancel))

            for mapping in self.ledger.complete_mappings(EntityType.LIST):
                if is_cancelled(cancel):
                    logger.info("Synchronization cancelled before list %s", mapping.local_id)
                    break
                if self.store.get_list(mapping.local_id) is None:
                    logger.debug(
                        "Skipping items of deleted local list %s (remote %s)",
                        mapping.local_id, mapping.remote_id,
                    )
                    continue
                items = ItemReconciler(
                    self.client,
                    self.store,
                    self.ledger,
                    local_list_id=mapping.local_id,
                    remote_list_id=mapping.remote_id,
                )
                result.merge(await items.run(cancel))

            result.finish()
            logger.info(
                "Full sync completed: %d synced, %d errors in %.0fms",
                result.entities_synced,
                result.error_count,
                result.duration_ms,
            )
            return result

        except Exception as exc:
            logger.exception("Full synchronization failed")
            result.record_error(f"Fatal error: {exc}")
            return result.finish()

    async def run_list(self, local_id: int, cancel: Optional[asyncio.Event] = None) -> SyncResult:
        """Check that a local list is mapped. Does not reconcile its contents."""
        return self._check_mapping(EntityType.LIST, local_id)

    async def run_item(self, local_id: int, cancel: Optional[asyncio.Event] = None) -> SyncResult:
        """Check that a local item is mapped. Does not reconcile its contents."""
        return self._check_mapping(EntityType.ITEM, local_id)

    def _check_mapping(self, entity_type: EntityType, local_id: int) -> SyncResult:
        result = SyncResult()
        try:
            mapping = self.ledger.find_by_local(entity_type, local_id)
            if mapping is None:
                result.record_error(f"No sync state found for {entity_type.value} {local_id}")
            else:
                result.entities_synced = 1
        except Exception as exc:
            logger.exception("Scoped sync of %s %s failed", entity_type.value, local_id)
            result.record_error(str(exc))
        return result.finish()
