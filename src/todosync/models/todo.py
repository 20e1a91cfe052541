"""Local to-do data models: lists and the items they own."""
from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel


class TodoList(SQLModel, table=True):
    """One row per local to-do list."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    # Deleting a list removes its items
    items: List["TodoItem"] = Relationship(
        back_populates="todo_list",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class TodoItem(SQLModel, table=True):
    """One row per local to-do item. Always belongs to exactly one list."""

    id: Optional[int] = Field(default=None, primary_key=True)
    list_id: int = Field(foreign_key="todolist.id", index=True, ondelete="CASCADE")
    title: str = Field(max_length=500)
    description: Optional[str] = Field(default=None, max_length=2000)
    is_completed: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    # Relationship
    todo_list: Optional[TodoList] = Relationship(back_populates="items")
