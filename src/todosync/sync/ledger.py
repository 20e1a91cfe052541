"""
Sync ledger: data access for SyncState mappings and the SyncLog audit trail.

No business logic and no retries. Database errors propagate to the caller.
"""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from todosync.models.sync import EntityType, SyncLog, SyncOperation, SyncState


class SyncLedger:
    def __init__(self, engine):
        self.engine = engine

    # ─── Mappings ─────────────────────────────────────────────────────────────

    def find_by_local(self, entity_type: EntityType, local_id: int) -> Optional[SyncState]:
        with Session(self.engine) as s:
            return s.exec(
                select(SyncState).where(
                    SyncState.entity_type == entity_type,
                    SyncState.local_id == local_id,
                )
            ).first()

    def find_by_remote(self, entity_type: EntityType, remote_id: int) -> Optional[SyncState]:
        with Session(self.engine) as s:
            return s.exec(
                select(SyncState).where(
                    SyncState.entity_type == entity_type,
                    SyncState.remote_id == remote_id,
                )
            ).first()

    def mappings_by_local(self, entity_type: EntityType) -> Dict[int, SyncState]:
        """All mappings of one type that have a local id, keyed by it."""
        with Session(self.engine) as s:
            rows = s.exec(
                select(SyncState).where(
                    SyncState.entity_type == entity_type,
                    SyncState.local_id.is_not(None),
                )
            ).all()
        return {row.local_id: row for row in rows}

    def mappings_by_remote(self, entity_type: EntityType) -> Dict[int, SyncState]:
        """All mappings of one type that have a remote id, keyed by it."""
        with Session(self.engine) as s:
            rows = s.exec(
                select(SyncState).where(
                    SyncState.entity_type == entity_type,
                    SyncState.remote_id.is_not(None),
                )
            ).all()
        return {row.remote_id: row for row in rows}

    def complete_mappings(self, entity_type: EntityType) -> List[SyncState]:
        """Mappings with both sides set, in insertion order."""
        with Session(self.engine) as s:
            return list(
                s.exec(
                    select(SyncState)
                    .where(
                        SyncState.entity_type == entity_type,
                        SyncState.local_id.is_not(None),
                        SyncState.remote_id.is_not(None),
                    )
                    .order_by(SyncState.id)
                ).all()
            )

    def add_mapping(
        self,
        entity_type: EntityType,
        local_id: Optional[int],
        remote_id: Optional[int],
        synced_at: datetime,
    ) -> SyncState:
        mapping = SyncState(
            entity_type=entity_type,
            local_id=local_id,
            remote_id=remote_id,
            last_synced_at=synced_at,
        )
        with Session(self.engine) as s:
            s.add(mapping)
            s.commit()
            s.refresh(mapping)
        return mapping

    def mark_synced(self, mapping_id: int, synced_at: datetime) -> None:
        """Advance a mapping's high-water mark."""
        with Session(self.engine) as s:
            mapping = s.get(SyncState, mapping_id)
            if mapping is None:
                raise LookupError(f"SyncState {mapping_id} does not exist")
            mapping.last_synced_at = synced_at
            s.add(mapping)
            s.commit()

    # ─── Log ──────────────────────────────────────────────────────────────────

    def append_log(
        self,
        entity_type: EntityType,
        entity_id: Optional[int],
        operation: SyncOperation,
        *,
        success: bool,
        error_message: Optional[str] = None,
        retry_count: int = 0,
        timestamp: Optional[datetime] = None,
    ) -> SyncLog:
        entry = SyncLog(
            entity_type=entity_type,
            entity_id=entity_id,
            operation=operation,
            success=success,
            error_message=error_message[:2000] if error_message else None,
            retry_count=retry_count,
            timestamp=timestamp or datetime.utcnow(),
        )
        with Session(self.engine) as s:
            s.add(entry)
            s.commit()
            s.refresh(entry)
        return entry

    def recent_logs(
        self,
        limit: int = 10,
        *,
        success: Optional[bool] = None,
        since: Optional[datetime] = None,
    ) -> List[SyncLog]:
        """Most-recent-first log entries, optionally filtered."""
        query = select(SyncLog)
        if success is not None:
            query = query.where(SyncLog.success == success)
        if since is not None:
            query = query.where(SyncLog.timestamp > since)
        query = query.order_by(SyncLog.timestamp.desc(), SyncLog.id.desc()).limit(limit)
        with Session(self.engine) as s:
            return list(s.exec(query).all())

    def count_logs(self, *, success: bool, since: Optional[datetime] = None) -> int:
        query = select(func.count()).select_from(SyncLog).where(SyncLog.success == success)
        if since is not None:
            query = query.where(SyncLog.timestamp > since)
        with Session(self.engine) as s:
            return s.exec(query).one()
