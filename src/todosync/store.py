"""
Local store access for lists and items.

User-facing writes stamp updated_at with the current time so the next push
pass sees them. Writes applied from the remote side pass the remote
timestamps through instead.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from todosync.models.todo import TodoItem, TodoList

logger = logging.getLogger(__name__)


class TodoStore:
    """CRUD over the local TodoList / TodoItem tables."""

    def __init__(self, engine):
        self.engine = engine

    # ─── Lists ────────────────────────────────────────────────────────────────

    def all_lists(self) -> List[TodoList]:
        with Session(self.engine) as s:
            return list(s.exec(select(TodoList).order_by(TodoList.id)).all())

    def get_list(self, list_id: int) -> Optional[TodoList]:
        with Session(self.engine) as s:
            return s.get(TodoList, list_id)

    def create_list(
        self,
        name: str,
        *,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> TodoList:
        now = datetime.utcnow()
        todo_list = TodoList(
            name=name,
            created_at=created_at or now,
            updated_at=updated_at or now,
        )
        with Session(self.engine) as s:
            s.add(todo_list)
            s.commit()
            s.refresh(todo_list)
        return todo_list

    def update_list(
        self, list_id: int, name: str, *, updated_at: Optional[datetime] = None
    ) -> Optional[TodoList]:
        """Rename a list. Returns None if it no longer exists."""
        with Session(self.engine) as s:
            todo_list = s.get(TodoList, list_id)
            if todo_list is None:
                return None
            todo_list.name = name
            todo_list.updated_at = updated_at or datetime.utcnow()
            s.add(todo_list)
            s.commit()
            s.refresh(todo_list)
            return todo_list

    def delete_list(self, list_id: int) -> bool:
        with Session(self.engine) as s:
            todo_list = s.get(TodoList, list_id)
            if todo_list is None:
                return False
            s.delete(todo_list)
            s.commit()
        return True

    # ─── Items ────────────────────────────────────────────────────────────────

    def items_for_list(self, list_id: int) -> List[TodoItem]:
        with Session(self.engine) as s:
            return list(
                s.exec(
                    select(TodoItem)
                    .where(TodoItem.list_id == list_id)
                    .order_by(TodoItem.id)
                ).all()
            )

    def get_item(self, item_id: int, list_id: Optional[int] = None) -> Optional[TodoItem]:
        with Session(self.engine) as s:
            item = s.get(TodoItem, item_id)
        if item is None or (list_id is not None and item.list_id != list_id):
            return None
        return item

    def create_item(
        self,
        list_id: int,
        title: str,
        *,
        description: Optional[str] = None,
        is_completed: bool = False,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> TodoItem:
        now = datetime.utcnow()
        item = TodoItem(
            list_id=list_id,
            title=title,
            description=description,
            is_completed=is_completed,
            created_at=created_at or now,
            updated_at=updated_at or now,
        )
        with Session(self.engine) as s:
            s.add(item)
            s.commit()
            s.refresh(item)
        return item

    def update_item(
        self,
        item_id: int,
        *,
        title: str,
        description: Optional[str],
        is_completed: bool,
        updated_at: Optional[datetime] = None,
    ) -> Optional[TodoItem]:
        """Replace an item's fields wholesale. Returns None if it no longer exists."""
        with Session(self.engine) as s:
            item = s.get(TodoItem, item_id)
            if item is None:
                return None
            item.title = title
            item.description = description
            item.is_completed = is_completed
            item.updated_at = updated_at or datetime.utcnow()
            s.add(item)
            s.commit()
            s.refresh(item)
            return item

    def delete_item(self, item_id: int) -> bool:
        with Session(self.engine) as s:
            item = s.get(TodoItem, item_id)
            if item is None:
                return False
            s.delete(item)
            s.commit()
        return True

    def mark_all_done(self, list_id: int) -> int:
        """Complete every open item in a list. Returns how many were changed."""
        now = datetime.utcnow()
        with Session(self.engine) as s:
            items = s.exec(
                select(TodoItem).where(
                    TodoItem.list_id == list_id,
                    TodoItem.is_completed == False,  # noqa: E712
                )
            ).all()
            for item in items:
                item.is_completed = True
                item.updated_at = now
                s.add(item)
            s.commit()
        if items:
            logger.info("Marked %d items as done in list %s", len(items), list_id)
        else:
            logger.info("No open items in list %s", list_id)
        return len(items)
