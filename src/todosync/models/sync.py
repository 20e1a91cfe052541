"""Sync bookkeeping models: the id-mapping table and the audit log."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel


class EntityType(str, Enum):
    """The two kinds of entity the engine reconciles."""

    LIST = "TodoList"
    ITEM = "TodoItem"


class SyncOperation(str, Enum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"


def _unique_when_set(name: str, column: str) -> Index:
    # Partial index: a row may briefly hold only one side of the pair
    where = text(f"{column} IS NOT NULL")
    return Index(
        name,
        "entity_type",
        column,
        unique=True,
        sqlite_where=where,
        postgresql_where=where,
    )


class SyncState(SQLModel, table=True):
    """
    Maps one local entity to one remote entity of the same type.

    last_synced_at is the high-water mark: changes on either side stamped
    at or before it are considered already reconciled.
    """

    __table_args__ = (
        _unique_when_set("ux_syncstate_local", "local_id"),
        _unique_when_set("ux_syncstate_remote", "remote_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    entity_type: EntityType = Field(index=True)
    local_id: Optional[int] = None
    remote_id: Optional[int] = None
    last_synced_at: datetime = Field(default_factory=datetime.utcnow)


class SyncLog(SQLModel, table=True):
    """Append-only record of each attempted remote or local write."""

    __table_args__ = (
        Index("ix_synclog_success_timestamp", "success", "timestamp"),
        Index("ix_synclog_entity", "entity_type", "entity_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    entity_type: EntityType
    entity_id: Optional[int] = None
    operation: SyncOperation
    success: bool
    error_message: Optional[str] = Field(default=None, max_length=2000)
    timestamp: datetime = Field(default_factory=datetime.utcnow, index=True)
    retry_count: int = 0
