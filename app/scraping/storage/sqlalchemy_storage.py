"""
SQLAlchemy-backed storage for sources, liens, runs, and audit entries.

Each operation runs in its own short session so background runs and API
reads never share a transaction.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.liens import (
    AuditEntry,
    DashboardStats,
    Lien,
    LienInput,
    LienStatus,
    PipelineRun,
    SourceRun,
)
from app.scraping.config.loader import build_source_descriptor, descriptor_to_payload
from app.scraping.config.models import SourceConfig, SourceDescriptor
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import ACTIVE_LEAD_WINDOW_DAYS, RecordStore, SourceStore
from db.models import audit_entry as audit_models
from db.models import lien as lien_models
from db.models import lien_source as source_models
from db.models import pipeline_run as run_models
from db.repositories.audit_repository import AuditEntryRepository
from db.repositories.lien_repository import LienRepository
from db.repositories.pipeline_run_repository import PipelineRunRepository
from db.repositories.source_repository import LienSourceRepository

logger = logging.getLogger(__name__)


class _SessionScoped:
    def __init__(self, *, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory: Callable[[], Session] = SessionLocal
        else:
            self._session_factory = session_factory

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()


class SQLAlchemySourceStore(_SessionScoped, SourceStore):
    def list_sources(self, *, active_only: bool = False) -> list[SourceConfig]:
        with self._session_scope() as session:
            rows = LienSourceRepository(session).list_sources(active_only=active_only)
            return [_to_source(row) for row in rows]

    def get_source(self, source_id: uuid.UUID) -> SourceConfig | None:
        with self._session_scope() as session:
            row = LienSourceRepository(session).get(source_id)
            return _to_source(row) if row is not None else None

    def add_source(
        self,
        *,
        name: str,
        jurisdiction: str,
        descriptor: SourceDescriptor,
        active: bool = True,
    ) -> SourceConfig:
        with self._session_scope() as session:
            row = LienSourceRepository(session).create(
                name=name,
                jurisdiction=jurisdiction,
                descriptor=descriptor_to_payload(descriptor),
                is_active=active,
            )
            return _to_source(row)

    def update_source(
        self,
        source_id: uuid.UUID,
        *,
        name: str | None = None,
        jurisdiction: str | None = None,
        descriptor: SourceDescriptor | None = None,
        active: bool | None = None,
    ) -> SourceConfig | None:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if jurisdiction is not None:
            changes["jurisdiction"] = jurisdiction
        if descriptor is not None:
            changes["descriptor"] = descriptor_to_payload(descriptor)
        if active is not None:
            changes["is_active"] = active

        with self._session_scope() as session:
            row = LienSourceRepository(session).update(source_id, **changes)
            return _to_source(row) if row is not None else None


class SQLAlchemyRecordStore(_SessionScoped, RecordStore):
    """
    PostgreSQL record store built on the repository layer.
    """

    # Liens -------------------------------------------------------------

    def create_or_get(self, lien: LienInput) -> tuple[Lien, bool]:
        payload = {
            "recording_number": lien.recording_number,
            "record_date": lien.record_date,
            "debtor_name": lien.debtor_name,
            "debtor_address": lien.debtor_address,
            "amount": lien.amount,
            "creditor_name": lien.creditor_name,
            "creditor_address": lien.creditor_address,
            "document_url": lien.document_url,
            "source_id": lien.source_id,
            "status": LienStatus.PENDING,
        }
        with self._session_scope() as session:
            row, created = LienRepository(session).insert_if_absent(payload)
            stored = _to_lien(row)
        if not created:
            log_event(
                logger,
                logging.INFO,
                "lien_already_exists",
                recording_number=lien.recording_number,
                lien_id=stored.id,
            )
        return stored, created

    def get_lien(self, lien_id: uuid.UUID) -> Lien | None:
        with self._session_scope() as session:
            row = LienRepository(session).get(lien_id)
            return _to_lien(row) if row is not None else None

    def get_lien_by_key(self, recording_number: str) -> Lien | None:
        with self._session_scope() as session:
            row = LienRepository(session).get_by_recording_number(recording_number)
            return _to_lien(row) if row is not None else None

    def update_status(self, recording_number: str, status: str) -> Lien | None:
        return self._update(recording_number, status=status)

    def update_external_id(self, recording_number: str, external_id: str) -> Lien | None:
        return self._update(recording_number, external_id=external_id, status=LienStatus.SYNCED)

    def update_enrichment(self, recording_number: str, data: dict[str, Any]) -> Lien | None:
        with self._session_scope() as session:
            repository = LienRepository(session)
            row = repository.get_by_recording_number(recording_number)
            if row is None:
                return None
            row = repository.update_fields(
                recording_number,
                enrichment_data={**(row.enrichment_data or {}), **data},
            )
            return _to_lien(row) if row is not None else None

    def recent_liens(self, limit: int = 50) -> list[Lien]:
        with self._session_scope() as session:
            return [_to_lien(row) for row in LienRepository(session).list_recent(limit=limit)]

    def liens_by_status(self, status: str, limit: int | None = None) -> list[Lien]:
        with self._session_scope() as session:
            rows = LienRepository(session).list_by_status(status, limit=limit)
            return [_to_lien(row) for row in rows]

    def liens_by_date(self, date_from: date | None = None, date_to: date | None = None) -> list[Lien]:
        with self._session_scope() as session:
            rows = LienRepository(session).list_by_record_date(date_from=date_from, date_to=date_to)
            return [_to_lien(row) for row in rows]

    def pending_over_threshold(self, threshold: Decimal) -> list[Lien]:
        with self._session_scope() as session:
            rows = LienRepository(session).list_pending_over(
                status=LienStatus.PENDING,
                threshold=threshold,
            )
            return [_to_lien(row) for row in rows]

    def dashboard_stats(self, *, now: datetime) -> DashboardStats:
        start_of_day = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        with self._session_scope() as session:
            repository = LienRepository(session)
            return DashboardStats(
                todays_liens=repository.count(created_since=start_of_day),
                synced=repository.count(statuses=(LienStatus.SYNCED,)),
                mailers_sent=repository.count(
                    statuses=(LienStatus.MAILER_SENT, LienStatus.COMPLETED)
                ),
                active_leads=repository.count(
                    statuses=(LienStatus.SYNCED,),
                    created_since=now - timedelta(days=ACTIVE_LEAD_WINDOW_DAYS),
                ),
            )

    def _update(self, recording_number: str, **changes: Any) -> Lien | None:
        with self._session_scope() as session:
            row = LienRepository(session).update_fields(recording_number, **changes)
            return _to_lien(row) if row is not None else None

    # Runs --------------------------------------------------------------

    def create_run(self, *, run_type: str, metadata: dict[str, Any] | None = None) -> PipelineRun:
        with self._session_scope() as session:
            return _to_run(PipelineRunRepository(session).create_run(run_type=run_type, metadata=metadata))

    def finish_run(
        self,
        run_id: uuid.UUID,
        *,
        status: str,
        records_found: int,
        records_accepted: int,
        records_over_threshold: int,
        error_message: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> PipelineRun | None:
        with self._session_scope() as session:
            row = PipelineRunRepository(session).mark_finished(
                run_id=run_id,
                status=status,
                records_found=records_found,
                records_accepted=records_accepted,
                records_over_threshold=records_over_threshold,
                error_message=error_message,
                metadata=metadata,
            )
            session.flush()
            return _to_run(row) if row is not None else None

    def get_run(self, run_id: uuid.UUID) -> PipelineRun | None:
        with self._session_scope() as session:
            row = PipelineRunRepository(session).get_run(run_id)
            return _to_run(row) if row is not None else None

    def recent_runs(self, limit: int = 20) -> list[PipelineRun]:
        with self._session_scope() as session:
            return [_to_run(row) for row in PipelineRunRepository(session).list_runs(limit=limit)]

    def create_source_run(self, *, run_id: uuid.UUID, source: SourceConfig) -> SourceRun:
        with self._session_scope() as session:
            row = PipelineRunRepository(session).create_source_run(
                run_id=run_id,
                source_id=source.id,
                source_name=source.name,
            )
            return _to_source_run(row)

    def finish_source_run(
        self,
        source_run_id: uuid.UUID,
        *,
        status: str,
        records_found: int,
        records_accepted: int,
        records_over_threshold: int,
        error_message: str | None = None,
    ) -> SourceRun | None:
        with self._session_scope() as session:
            row = PipelineRunRepository(session).mark_source_run_finished(
                source_run_id=source_run_id,
                status=status,
                records_found=records_found,
                records_accepted=records_accepted,
                records_over_threshold=records_over_threshold,
                error_message=error_message,
            )
            session.flush()
            return _to_source_run(row) if row is not None else None

    def source_runs_for(self, run_id: uuid.UUID) -> list[SourceRun]:
        with self._session_scope() as session:
            rows = PipelineRunRepository(session).list_source_runs(run_id=run_id)
            return [_to_source_run(row) for row in rows]

    # Audit -------------------------------------------------------------

    def append_audit(
        self,
        *,
        level: str,
        message: str,
        component: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry:
        with self._session_scope() as session:
            row = AuditEntryRepository(session).append(
                level=level,
                message=message,
                component=component,
                metadata=metadata,
            )
            return _to_audit(row)

    def recent_audit(self, limit: int = 100, level: str | None = None) -> list[AuditEntry]:
        with self._session_scope() as session:
            rows = AuditEntryRepository(session).list_recent(limit=limit, level=level)
            return [_to_audit(row) for row in rows]

    def audit_by_date(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[AuditEntry]:
        start = datetime.combine(date_from, time.min, tzinfo=timezone.utc) if date_from else None
        end = (
            datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
            if date_to
            else None
        )
        with self._session_scope() as session:
            rows = AuditEntryRepository(session).list_between(start=start, end=end)
            return [_to_audit(row) for row in rows]


def _to_source(row: source_models.LienSource) -> SourceConfig:
    return SourceConfig(
        id=row.id,
        name=row.name,
        jurisdiction=row.jurisdiction,
        descriptor=build_source_descriptor(row.descriptor),
        active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_lien(row: lien_models.Lien) -> Lien:
    return Lien(
        id=row.id,
        recording_number=row.recording_number,
        record_date=row.record_date,
        debtor_name=row.debtor_name,
        amount=Decimal(row.amount),
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
        debtor_address=row.debtor_address,
        creditor_name=row.creditor_name,
        creditor_address=row.creditor_address,
        document_url=row.document_url,
        source_id=row.source_id,
        external_id=row.external_id,
        enrichment_data=row.enrichment_data,
    )


def _to_run(row: run_models.PipelineRun) -> PipelineRun:
    return PipelineRun(
        id=row.id,
        run_type=row.run_type,
        status=row.status,
        started_at=row.started_at,
        ended_at=row.ended_at,
        records_found=row.records_found,
        records_accepted=row.records_accepted,
        records_over_threshold=row.records_over_threshold,
        error_message=row.error_message,
        metadata=dict(row.run_metadata or {}),
    )


def _to_source_run(row: run_models.SourceRun) -> SourceRun:
    return SourceRun(
        id=row.id,
        run_id=row.run_id,
        source_id=row.source_id,
        source_name=row.source_name,
        status=row.status,
        started_at=row.started_at,
        ended_at=row.ended_at,
        records_found=row.records_found,
        records_accepted=row.records_accepted,
        records_over_threshold=row.records_over_threshold,
        error_message=row.error_message,
    )


def _to_audit(row: audit_models.AuditEntry) -> AuditEntry:
    return AuditEntry(
        id=row.id,
        level=row.level,
        message=row.message,
        component=row.component,
        timestamp=row.timestamp,
        metadata=row.entry_metadata,
    )
