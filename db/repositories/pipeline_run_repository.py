"""
Repository for pipeline run and sub-run lifecycle tracking.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.pipeline_run import PipelineRun, SourceRun


class PipelineRunRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_run(self, *, run_type: str, metadata: dict[str, Any] | None = None) -> PipelineRun:
        run = PipelineRun(
            run_type=run_type,
            status="running",
            started_at=datetime.now(timezone.utc),
            run_metadata=metadata,
        )
        self._session.add(run)
        self._session.flush()
        self._session.refresh(run)
        return run

    def get_run(self, run_id: uuid.UUID) -> PipelineRun | None:
        return self._session.get(PipelineRun, run_id)

    def list_runs(self, *, limit: int = 20) -> list[PipelineRun]:
        stmt = select(PipelineRun).order_by(PipelineRun.started_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_finished(
        self,
        *,
        run_id: uuid.UUID,
        status: str,
        records_found: int,
        records_accepted: int,
        records_over_threshold: int,
        error_message: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> PipelineRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = status
        run.ended_at = datetime.now(timezone.utc)
        run.records_found = records_found
        run.records_accepted = records_accepted
        run.records_over_threshold = records_over_threshold
        run.error_message = error_message
        run.run_metadata = {**(run.run_metadata or {}), **(metadata or {})}
        return run

    def create_source_run(
        self,
        *,
        run_id: uuid.UUID,
        source_id: uuid.UUID,
        source_name: str,
    ) -> SourceRun:
        source_run = SourceRun(
            run_id=run_id,
            source_id=source_id,
            source_name=source_name,
            status="running",
            started_at=datetime.now(timezone.utc),
        )
        self._session.add(source_run)
        self._session.flush()
        self._session.refresh(source_run)
        return source_run

    def mark_source_run_finished(
        self,
        *,
        source_run_id: uuid.UUID,
        status: str,
        records_found: int,
        records_accepted: int,
        records_over_threshold: int,
        error_message: str | None = None,
    ) -> SourceRun | None:
        source_run = self._session.get(SourceRun, source_run_id)
        if source_run is None:
            return None
        source_run.status = status
        source_run.ended_at = datetime.now(timezone.utc)
        source_run.records_found = records_found
        source_run.records_accepted = records_accepted
        source_run.records_over_threshold = records_over_threshold
        source_run.error_message = error_message
        return source_run

    def list_source_runs(self, *, run_id: uuid.UUID) -> list[SourceRun]:
        stmt = (
            select(SourceRun)
            .where(SourceRun.run_id == run_id)
            .order_by(SourceRun.started_at.asc())
        )
        return list(self._session.scalars(stmt).all())
