"""
Repository for lien persistence keyed by recording number.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.lien import Lien

_RECORDING_NUMBER_CONSTRAINT = "uq_liens_recording_number"


class LienRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_if_absent(self, payload: dict[str, Any]) -> tuple[Lien, bool]:
        """
        Insert one lien unless its recording number already exists.

        Returns the stored row and whether this call created it.
        """

        stmt = (
            insert(Lien)
            .values(**payload)
            .on_conflict_do_nothing(constraint=_RECORDING_NUMBER_CONSTRAINT)
            .returning(Lien.id)
        )
        inserted_id = self._session.scalars(stmt).first()
        lien = self.get_by_recording_number(payload["recording_number"])
        if lien is None:
            raise RuntimeError(f"Lien vanished after insert: {payload['recording_number']}")
        return lien, inserted_id is not None

    def get(self, lien_id: uuid.UUID) -> Lien | None:
        return self._session.get(Lien, lien_id)

    def get_by_recording_number(self, recording_number: str) -> Lien | None:
        stmt = select(Lien).where(Lien.recording_number == recording_number)
        return self._session.scalars(stmt).first()

    def update_fields(self, recording_number: str, **changes: Any) -> Lien | None:
        lien = self.get_by_recording_number(recording_number)
        if lien is None:
            return None
        for name, value in changes.items():
            setattr(lien, name, value)
        self._session.flush()
        return lien

    def list_recent(self, *, limit: int = 50) -> list[Lien]:
        stmt = select(Lien).order_by(Lien.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def list_by_status(self, status: str, *, limit: int | None = None) -> list[Lien]:
        stmt: Select[tuple[Lien]] = (
            select(Lien).where(Lien.status == status).order_by(Lien.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def list_by_record_date(self, *, date_from: date | None, date_to: date | None) -> list[Lien]:
        stmt: Select[tuple[Lien]] = select(Lien)
        if date_from is not None:
            stmt = stmt.where(Lien.record_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Lien.record_date <= date_to)
        stmt = stmt.order_by(Lien.record_date.asc(), Lien.recording_number.asc())
        return list(self._session.scalars(stmt).all())

    def list_pending_over(self, *, status: str, threshold: Decimal) -> list[Lien]:
        stmt = (
            select(Lien)
            .where(Lien.status == status, Lien.amount >= threshold)
            .order_by(Lien.created_at.asc())
        )
        return list(self._session.scalars(stmt).all())

    def count(
        self,
        *,
        statuses: tuple[str, ...] | None = None,
        created_since: datetime | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(Lien)
        if statuses:
            stmt = stmt.where(Lien.status.in_(statuses))
        if created_since is not None:
            stmt = stmt.where(Lien.created_at >= created_since)
        return int(self._session.scalar(stmt) or 0)
