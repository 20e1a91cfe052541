"""Per-run and status value objects. None of these are persisted."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from todosync.models.sync import EntityType, SyncOperation


class SyncResult(BaseModel):
    """Outcome of one run or one pass: counts, messages and timing."""

    success: bool = False
    entities_synced: int = 0
    error_count: int = 0
    errors: List[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def duration_ms(self) -> float:
        end = self.completed_at or datetime.utcnow()
        return (end - self.started_at).total_seconds() * 1000

    def record_error(self, message: str) -> None:
        self.error_count += 1
        self.errors.append(message)

    def merge(self, other: "SyncResult") -> None:
        """Fold another pass's counts and messages into this one."""
        self.entities_synced += other.entities_synced
        self.error_count += other.error_count
        self.errors.extend(other.errors)

    def finish(self) -> "SyncResult":
        self.success = self.error_count == 0
        self.completed_at = datetime.utcnow()
        return self


class SyncError(BaseModel):
    entity_type: EntityType
    entity_id: Optional[int] = None
    operation: SyncOperation
    message: str
    timestamp: datetime


class SyncStatus(BaseModel):
    last_successful_sync: Optional[datetime] = None
    pending_sync_count: int = 0
    failed_sync_count: int = 0
    is_healthy: bool = True
    recent_errors: List[SyncError] = Field(default_factory=list)
