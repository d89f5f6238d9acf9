"""
Repository for registered recorder sources.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.lien_source import LienSource


class LienSourceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_sources(self, *, active_only: bool = False) -> list[LienSource]:
        stmt = select(LienSource)
        if active_only:
            stmt = stmt.where(LienSource.is_active.is_(True))
        stmt = stmt.order_by(LienSource.created_at.asc(), LienSource.name.asc())
        return list(self._session.scalars(stmt).all())

    def get(self, source_id: uuid.UUID) -> LienSource | None:
        return self._session.get(LienSource, source_id)

    def create(
        self,
        *,
        name: str,
        jurisdiction: str,
        descriptor: dict[str, Any],
        is_active: bool = True,
    ) -> LienSource:
        source = LienSource(
            name=name,
            jurisdiction=jurisdiction,
            descriptor=descriptor,
            is_active=is_active,
        )
        self._session.add(source)
        self._session.flush()
        self._session.refresh(source)
        return source

    def update(self, source_id: uuid.UUID, **changes: Any) -> LienSource | None:
        source = self.get(source_id)
        if source is None:
            return None
        for name, value in changes.items():
            setattr(source, name, value)
        self._session.flush()
        self._session.refresh(source)
        return source
