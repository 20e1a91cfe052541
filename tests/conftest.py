"""Shared test fixtures."""
from datetime import datetime, timedelta
from itertools import count
from typing import Dict, Generator, List, Optional
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from todosync.models.todo import TodoItem, TodoList  # noqa: F401
from todosync.models.sync import SyncLog, SyncState  # noqa: F401
from todosync.models.remote import RemoteItem, RemoteList
from todosync.remote.client import RemoteApiError


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


# ─── Fake remote service ──────────────────────────────────────────────────────

class FakeRemote:
    """
    In-memory stand-in for the remote service.

    Exposes an AsyncMock per client operation (so tests can assert on calls
    or inject failures via side_effect) backed by plain dicts.
    """

    def __init__(self):
        self.lists: Dict[int, RemoteList] = {}
        self.items: Dict[int, Dict[int, RemoteItem]] = {}
        self._ids = count(1000)

        self.client = AsyncMock()
        self.client.get_lists = AsyncMock(side_effect=self._get_lists)
        self.client.create_list = AsyncMock(side_effect=self._create_list)
        self.client.update_list = AsyncMock(side_effect=self._update_list)
        self.client.get_items = AsyncMock(side_effect=self._get_items)
        self.client.create_item = AsyncMock(side_effect=self._create_item)
        self.client.update_item = AsyncMock(side_effect=self._update_item)

    def add_list(self, list_id: int, name: str, updated_at: datetime) -> RemoteList:
        remote = RemoteList(
            id=list_id,
            name=name,
            created_at=updated_at - timedelta(hours=1),
            updated_at=updated_at,
        )
        self.lists[list_id] = remote
        self.items.setdefault(list_id, {})
        return remote

    def add_item(
        self,
        list_id: int,
        item_id: int,
        title: str,
        updated_at: datetime,
        *,
        description: Optional[str] = None,
        is_completed: bool = False,
    ) -> RemoteItem:
        remote = RemoteItem(
            id=item_id,
            title=title,
            description=description,
            is_completed=is_completed,
            created_at=updated_at - timedelta(hours=1),
            updated_at=updated_at,
        )
        self.items.setdefault(list_id, {})[item_id] = remote
        return remote

    async def _get_lists(self) -> List[RemoteList]:
        return list(self.lists.values())

    async def _create_list(self, payload) -> RemoteList:
        return self.add_list(next(self._ids), payload.name, datetime.utcnow())

    async def _update_list(self, list_id, payload) -> RemoteList:
        if list_id not in self.lists:
            raise RemoteApiError("Remote API returned 404: not found", status_code=404)
        remote = self.lists[list_id].model_copy(
            update={"name": payload.name, "updated_at": datetime.utcnow()}
        )
        self.lists[list_id] = remote
        return remote

    async def _get_items(self, list_id) -> List[RemoteItem]:
        return list(self.items.get(list_id, {}).values())

    async def _create_item(self, list_id, payload) -> RemoteItem:
        return self.add_item(
            list_id,
            next(self._ids),
            payload.title,
            datetime.utcnow(),
            description=payload.description,
            is_completed=payload.is_completed,
        )

    async def _update_item(self, list_id, item_id, payload) -> RemoteItem:
        remote = self.items[list_id][item_id].model_copy(
            update={
                "title": payload.title,
                "description": payload.description,
                "is_completed": payload.is_completed,
                "updated_at": datetime.utcnow(),
            }
        )
        self.items[list_id][item_id] = remote
        return remote


@pytest.fixture(name="remote")
def remote_fixture() -> FakeRemote:
    return FakeRemote()
