"""Tests for TodoStore local CRUD."""
from datetime import datetime, timedelta

from todosync.store import TodoStore

T0 = datetime(2025, 1, 15, 7, 0)


class TestLists:
    def test_create_stamps_now_by_default(self, engine):
        before = datetime.utcnow()
        todo_list = TodoStore(engine).create_list("Chores")
        assert todo_list.id is not None
        assert todo_list.updated_at >= before

    def test_create_keeps_given_timestamps(self, engine):
        todo_list = TodoStore(engine).create_list(
            "Imported", created_at=T0, updated_at=T0 + timedelta(hours=1)
        )
        assert todo_list.created_at == T0
        assert todo_list.updated_at == T0 + timedelta(hours=1)

    def test_naive_utc_round_trip(self, engine):
        store = TodoStore(engine)
        todo_list = store.create_list("Imported", created_at=T0, updated_at=T0)
        stored = store.get_list(todo_list.id)
        assert stored.updated_at == T0
        assert stored.updated_at.tzinfo is None

    def test_update_missing_list(self, engine):
        assert TodoStore(engine).update_list(42, "nope") is None

    def test_update_bumps_updated_at(self, engine):
        store = TodoStore(engine)
        todo_list = store.create_list("Chores", updated_at=T0)
        updated = store.update_list(todo_list.id, "House chores")
        assert updated.name == "House chores"
        assert updated.updated_at > T0

    def test_delete_removes_items(self, engine):
        store = TodoStore(engine)
        todo_list = store.create_list("Chores")
        store.create_item(todo_list.id, "Sweep")
        assert store.delete_list(todo_list.id) is True
        assert store.get_list(todo_list.id) is None
        assert store.items_for_list(todo_list.id) == []
        assert store.delete_list(todo_list.id) is False


class TestItems:
    def test_get_item_scoped_to_list(self, engine):
        store = TodoStore(engine)
        first = store.create_list("A")
        second = store.create_list("B")
        item = store.create_item(first.id, "Sweep")
        assert store.get_item(item.id, list_id=first.id).title == "Sweep"
        assert store.get_item(item.id, list_id=second.id) is None

    def test_update_replaces_fields(self, engine):
        store = TodoStore(engine)
        todo_list = store.create_list("A")
        item = store.create_item(todo_list.id, "Sweep", description="kitchen")
        updated = store.update_item(
            item.id, title="Mop", description=None, is_completed=True, updated_at=T0
        )
        assert (updated.title, updated.description, updated.is_completed) == ("Mop", None, True)
        assert updated.updated_at == T0

    def test_mark_all_done(self, engine):
        store = TodoStore(engine)
        todo_list = store.create_list("A")
        store.create_item(todo_list.id, "one")
        store.create_item(todo_list.id, "two", is_completed=True)
        store.create_item(todo_list.id, "three")
        assert store.mark_all_done(todo_list.id) == 2
        assert all(i.is_completed for i in store.items_for_list(todo_list.id))
        assert store.mark_all_done(todo_list.id) == 0
