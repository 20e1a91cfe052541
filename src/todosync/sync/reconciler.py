"""
Reconcilers: pull remote state into the local store, then push local state
to the remote service.

Both passes decide create/update/skip from the SyncState mapping of each
entity:

  Pull, per remote entity:
    no mapping                              → create local copy + mapping
    remote.updated_at > last_synced_at      → overwrite local, advance mark
    otherwise                               → skip

  Push, per local entity:
    no mapping                              → remote create + mapping
    local.updated_at > last_synced_at       → remote update, advance mark
    otherwise                               → skip

Pull must run before push. A pull overwrite copies the remote updated_at
onto the local row and then moves last_synced_at to "now", so the push pass
that follows sees the row as clean and does not echo the change back.

Failure isolation: a remote error during a push is recorded against that one
entity (SyncLog row + error count) and the loop moves on. Anything else that
escapes a pass (remote fetch failure, database error) aborts that pass only
and is reported as a single error in its result.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, List, Optional

from todosync.models.remote import (
    CreateRemoteItem,
    CreateRemoteList,
    RemoteItem,
    RemoteList,
    UpdateRemoteItem,
    UpdateRemoteList,
)
from todosync.models.sync import EntityType, SyncOperation, SyncState
from todosync.models.todo import TodoItem, TodoList
from todosync.remote.client import RemoteApiError
from todosync.sync.results import SyncResult

logger = logging.getLogger(__name__)


def is_cancelled(cancel: Optional[asyncio.Event]) -> bool:
    return cancel is not None and cancel.is_set()


class Reconciler:
    """Pull/push algorithm shared by lists and items. Subclasses supply the I/O."""

    entity_type: EntityType
    noun: str

    def __init__(self, client, store, ledger):
        """
        Args:
            client: RemoteTodoClient (or AsyncMock in tests).
            store: TodoStore for the local side.
            ledger: SyncLedger holding mappings and the log.
        """
        self.client = client
        self.store = store
        self.ledger = ledger

    async def run(self, cancel: Optional[asyncio.Event] = None) -> SyncResult:
        """Pull, then push. The order is load-bearing (see module docstring)."""
        result = SyncResult()
        result.merge(await self.pull(cancel))
        result.merge(await self.push(cancel))
        return result.finish()

    # ─── Pull ─────────────────────────────────────────────────────────────────

    async def pull(self, cancel: Optional[asyncio.Event] = None) -> SyncResult:
        result = SyncResult()
        try:
            remotes = await self._fetch_remote()
            mappings = self.ledger.mappings_by_remote(self.entity_type)

            for remote in remotes:
                if is_cancelled(cancel):
                    logger.info("%s pull cancelled", self.noun.capitalize())
                    break

                mapping = mappings.get(remote.id)
                if mapping is None:
                    self._pull_create(remote)
                    result.entities_synced += 1
                elif self._pull_update(remote, mapping):
                    result.entities_synced += 1

        except Exception as exc:
            logger.exception("%s pull failed", self.noun.capitalize())
            result.record_error(f"{self._pass_label('Pull')} error: {exc}")

        return result.finish()

    def _pull_create(self, remote) -> None:
        local_id = self._create_local(remote)
        self.ledger.add_mapping(self.entity_type, local_id, remote.id, datetime.utcnow())
        self.ledger.append_log(
            self.entity_type, local_id, SyncOperation.CREATE, success=True
        )
        logger.info(
            "Created local %s %s from remote %s", self.noun, local_id, remote.id
        )

    def _pull_update(self, remote, mapping: SyncState) -> bool:
        """Overwrite the local copy if the remote changed past the mark."""
        if mapping.local_id is None or remote.updated_at <= mapping.last_synced_at:
            return False

        if not self._overwrite_local(mapping.local_id, remote):
            logger.debug(
                "Local %s %s mapped to remote %s no longer exists",
                self.noun, mapping.local_id, remote.id,
            )
            return False

        self.ledger.mark_synced(mapping.id, datetime.utcnow())
        self.ledger.append_log(
            self.entity_type, mapping.local_id, SyncOperation.UPDATE, success=True
        )
        logger.debug(
            "Updated local %s %s from remote %s", self.noun, mapping.local_id, remote.id
        )
        return True

    # ─── Push ─────────────────────────────────────────────────────────────────

    async def push(self, cancel: Optional[asyncio.Event] = None) -> SyncResult:
        result = SyncResult()
        try:
            locals_ = self._fetch_local()
            mappings = self.ledger.mappings_by_local(self.entity_type)

            for local in locals_:
                if is_cancelled(cancel):
                    logger.info("%s push cancelled", self.noun.capitalize())
                    break

                mapping = mappings.get(local.id)
                if mapping is None:
                    await self._push_create(local, result)
                elif (
                    mapping.remote_id is not None
                    and local.updated_at > mapping.last_synced_at
                ):
                    await self._push_update(local, mapping, result)

        except Exception as exc:
            logger.exception("%s push failed", self.noun.capitalize())
            result.record_error(f"{self._pass_label('Push')} error: {exc}")

        return result.finish()

    async def _push_create(self, local, result: SyncResult) -> None:
        try:
            remote = await self._create_remote(local)
        except RemoteApiError as exc:
            self._record_failure(
                local.id,
                SyncOperation.CREATE,
                exc,
                result,
                f"Failed to create remote {self.noun} for local id {local.id}: {exc}",
            )
            return

        self.ledger.add_mapping(self.entity_type, local.id, remote.id, datetime.utcnow())
        self.ledger.append_log(
            self.entity_type, local.id, SyncOperation.CREATE, success=True
        )
        result.entities_synced += 1
        logger.info("Created remote %s %s from local %s", self.noun, remote.id, local.id)

    async def _push_update(self, local, mapping: SyncState, result: SyncResult) -> None:
        try:
            await self._update_remote(mapping.remote_id, local)
        except RemoteApiError as exc:
            self._record_failure(
                local.id,
                SyncOperation.UPDATE,
                exc,
                result,
                f"Failed to update remote {self.noun} {mapping.remote_id}: {exc}",
            )
            return

        self.ledger.mark_synced(mapping.id, datetime.utcnow())
        self.ledger.append_log(
            self.entity_type, local.id, SyncOperation.UPDATE, success=True
        )
        result.entities_synced += 1
        logger.debug(
            "Updated remote %s %s from local %s", self.noun, mapping.remote_id, local.id
        )

    def _record_failure(
        self,
        local_id: int,
        operation: SyncOperation,
        exc: RemoteApiError,
        result: SyncResult,
        message: str,
    ) -> None:
        self.ledger.append_log(
            self.entity_type,
            local_id,
            operation,
            success=False,
            error_message=str(exc),
            retry_count=exc.retries,
        )
        result.record_error(message)
        logger.error(
            "Sync error for %s %s during %s: %s",
            self.entity_type.value, local_id, operation.value, exc,
        )

    def _pass_label(self, direction: str) -> str:
        return direction

    # ─── Entity-specific hooks ────────────────────────────────────────────────

    async def _fetch_remote(self) -> List[Any]:
        raise NotImplementedError

    def _fetch_local(self) -> List[Any]:
        raise NotImplementedError

    def _create_local(self, remote) -> int:
        raise NotImplementedError

    def _overwrite_local(self, local_id: int, remote) -> bool:
        raise NotImplementedError

    async def _create_remote(self, local):
        raise NotImplementedError

    async def _update_remote(self, remote_id: int, local) -> None:
        raise NotImplementedError


class ListReconciler(Reconciler):
    """Reconciles every list on both sides."""

    entity_type = EntityType.LIST
    noun = "list"

    async def _fetch_remote(self) -> List[RemoteList]:
        return await self.client.get_lists()

    def _fetch_local(self) -> List[TodoList]:
        return self.store.all_lists()

    def _create_local(self, remote: RemoteList) -> int:
        todo_list = self.store.create_list(
            remote.name, created_at=remote.created_at, updated_at=remote.updated_at
        )
        return todo_list.id

    def _overwrite_local(self, local_id: int, remote: RemoteList) -> bool:
        updated = self.store.update_list(local_id, remote.name, updated_at=remote.updated_at)
        return updated is not None

    async def _create_remote(self, local: TodoList) -> RemoteList:
        return await self.client.create_list(CreateRemoteList(name=local.name))

    async def _update_remote(self, remote_id: int, local: TodoList) -> None:
        await self.client.update_list(remote_id, UpdateRemoteList(name=local.name))


class ItemReconciler(Reconciler):
    """
    Reconciles the items of one list that is already mapped on both sides.

    Items of unmapped lists are never touched; they wait until their list
    has been mapped by an earlier list pass.
    """

    entity_type = EntityType.ITEM
    noun = "item"

    def __init__(self, client, store, ledger, local_list_id: int, remote_list_id: int):
        super().__init__(client, store, ledger)
        self.local_list_id = local_list_id
        self.remote_list_id = remote_list_id

    async def _fetch_remote(self) -> List[RemoteItem]:
        return await self.client.get_items(self.remote_list_id)

    def _fetch_local(self) -> List[TodoItem]:
        return self.store.items_for_list(self.local_list_id)

    def _create_local(self, remote: RemoteItem) -> int:
        item = self.store.create_item(
            self.local_list_id,
            remote.title,
            description=remote.description,
            is_completed=remote.is_completed,
            created_at=remote.created_at,
            updated_at=remote.updated_at,
        )
        return item.id

    def _overwrite_local(self, local_id: int, remote: RemoteItem) -> bool:
        updated = self.store.update_item(
            local_id,
            title=remote.title,
            description=remote.description,
            is_completed=remote.is_completed,
            updated_at=remote.updated_at,
        )
        return updated is not None

    async def _create_remote(self, local: TodoItem) -> RemoteItem:
        return await self.client.create_item(
            self.remote_list_id,
            CreateRemoteItem(
                title=local.title,
                description=local.description,
                is_completed=local.is_completed,
            ),
        )

    async def _update_remote(self, remote_id: int, local: TodoItem) -> None:
        await self.client.update_item(
            self.remote_list_id,
            remote_id,
            UpdateRemoteItem(
                title=local.title,
                description=local.description,
                is_completed=local.is_completed,
            ),
        )

    def _pass_label(self, direction: str) -> str:
        return f"{direction} items (list {self.local_list_id})"
