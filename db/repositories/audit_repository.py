"""
Repository for the append-only audit log.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.audit_entry import AuditEntry


class AuditEntryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def append(
        self,
        *,
        level: str,
        message: str,
        component: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            level=level,
            message=message,
            component=component,
            entry_metadata=metadata,
            timestamp=datetime.now(timezone.utc),
        )
        self._session.add(entry)
        self._session.flush()
        return entry

    def list_recent(self, *, limit: int = 100, level: str | None = None) -> list[AuditEntry]:
        stmt: Select[tuple[AuditEntry]] = select(AuditEntry)
        if level:
            stmt = stmt.where(AuditEntry.level == level)
        stmt = stmt.order_by(AuditEntry.timestamp.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def list_between(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AuditEntry]:
        stmt: Select[tuple[AuditEntry]] = select(AuditEntry)
        if start is not None:
            stmt = stmt.where(AuditEntry.timestamp >= start)
        if end is not None:
            stmt = stmt.where(AuditEntry.timestamp < end)
        return list(self._session.scalars(stmt.order_by(AuditEntry.timestamp.asc())).all())
