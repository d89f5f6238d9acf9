"""
In-process storage implementation used for local runs and tests.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from app.domain.liens import (
    AuditEntry,
    DashboardStats,
    Lien,
    LienInput,
    LienStatus,
    PipelineRun,
    RunStatus,
    SourceRun,
)
from app.scraping.config.models import SourceConfig, SourceDescriptor
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import ACTIVE_LEAD_WINDOW_DAYS, RecordStore, SourceStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySourceStore(SourceStore):
    def __init__(self, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._sources: dict[uuid.UUID, SourceConfig] = {}
        self._lock = threading.Lock()

    def list_sources(self, *, active_only: bool = False) -> list[SourceConfig]:
        with self._lock:
            sources = list(self._sources.values())
        if active_only:
            sources = [source for source in sources if source.active]
        return sources

    def get_source(self, source_id: uuid.UUID) -> SourceConfig | None:
        with self._lock:
            return self._sources.get(source_id)

    def add_source(
        self,
        *,
        name: str,
        jurisdiction: str,
        descriptor: SourceDescriptor,
        active: bool = True,
    ) -> SourceConfig:
        now = self._clock()
        source = SourceConfig(
            id=uuid.uuid4(),
            name=name,
            jurisdiction=jurisdiction,
            descriptor=descriptor,
            active=active,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._sources[source.id] = source
        return source

    def update_source(
        self,
        source_id: uuid.UUID,
        *,
        name: str | None = None,
        jurisdiction: str | None = None,
        descriptor: SourceDescriptor | None = None,
        active: bool | None = None,
    ) -> SourceConfig | None:
        with self._lock:
            current = self._sources.get(source_id)
            if current is None:
                return None
            updated = replace(
                current,
                name=current.name if name is None else name,
                jurisdiction=current.jurisdiction if jurisdiction is None else jurisdiction,
                descriptor=current.descriptor if descriptor is None else descriptor,
                active=current.active if active is None else active,
                updated_at=self._clock(),
            )
            self._sources[source_id] = updated
            return updated


class InMemoryRecordStore(RecordStore):
    """
    Dictionary-backed record store guarded by a single lock.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._liens: dict[str, Lien] = {}
        self._runs: dict[uuid.UUID, PipelineRun] = {}
        self._source_runs: dict[uuid.UUID, SourceRun] = {}
        self._audit: list[AuditEntry] = []

    # Liens -------------------------------------------------------------

    def create_or_get(self, lien: LienInput) -> tuple[Lien, bool]:
        with self._lock:
            existing = self._liens.get(lien.recording_number)
            if existing is not None:
                log_event(
                    logger,
                    logging.INFO,
                    "lien_already_exists",
                    recording_number=lien.recording_number,
                    lien_id=existing.id,
                )
                return existing, False

            now = self._clock()
            created = Lien(
                id=uuid.uuid4(),
                recording_number=lien.recording_number,
                record_date=lien.record_date,
                debtor_name=lien.debtor_name,
                amount=lien.amount,
                status=LienStatus.PENDING,
                created_at=now,
                updated_at=now,
                debtor_address=lien.debtor_address,
                creditor_name=lien.creditor_name,
                creditor_address=lien.creditor_address,
                document_url=lien.document_url,
                source_id=lien.source_id,
            )
            self._liens[created.recording_number] = created
            return created, True

    def get_lien(self, lien_id: uuid.UUID) -> Lien | None:
        with self._lock:
            for lien in self._liens.values():
                if lien.id == lien_id:
                    return lien
        return None

    def get_lien_by_key(self, recording_number: str) -> Lien | None:
        with self._lock:
            return self._liens.get(recording_number)

    def update_status(self, recording_number: str, status: str) -> Lien | None:
        return self._update_lien(recording_number, status=status)

    def update_external_id(self, recording_number: str, external_id: str) -> Lien | None:
        return self._update_lien(recording_number, external_id=external_id, status=LienStatus.SYNCED)

    def update_enrichment(self, recording_number: str, data: dict[str, Any]) -> Lien | None:
        with self._lock:
            current = self._liens.get(recording_number)
            if current is None:
                return None
            merged = {**(current.enrichment_data or {}), **data}
            return self._update_lien(recording_number, enrichment_data=merged)

    def recent_liens(self, limit: int = 50) -> list[Lien]:
        with self._lock:
            ordered = list(reversed(list(self._liens.values())))
        return ordered[: max(1, limit)]

    def liens_by_status(self, status: str, limit: int | None = None) -> list[Lien]:
        with self._lock:
            matched = [lien for lien in reversed(list(self._liens.values())) if lien.status == status]
        return matched if limit is None else matched[: max(1, limit)]

    def liens_by_date(self, date_from: date | None = None, date_to: date | None = None) -> list[Lien]:
        with self._lock:
            liens = list(self._liens.values())
        return [
            lien
            for lien in liens
            if (date_from is None or lien.record_date >= date_from)
            and (date_to is None or lien.record_date <= date_to)
        ]

    def pending_over_threshold(self, threshold: Decimal) -> list[Lien]:
        with self._lock:
            liens = list(self._liens.values())
        return [
            lien for lien in liens if lien.status == LienStatus.PENDING and lien.amount >= threshold
        ]

    def dashboard_stats(self, *, now: datetime) -> DashboardStats:
        start_of_day = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        lead_window_start = now - timedelta(days=ACTIVE_LEAD_WINDOW_DAYS)
        with self._lock:
            liens = list(self._liens.values())
        return DashboardStats(
            todays_liens=sum(1 for lien in liens if lien.created_at >= start_of_day),
            synced=sum(1 for lien in liens if lien.status == LienStatus.SYNCED),
            mailers_sent=sum(
                1 for lien in liens if lien.status in (LienStatus.MAILER_SENT, LienStatus.COMPLETED)
            ),
            active_leads=sum(
                1
                for lien in liens
                if lien.status == LienStatus.SYNCED and lien.created_at >= lead_window_start
            ),
        )

    def _update_lien(self, recording_number: str, **changes: Any) -> Lien | None:
        with self._lock:
            current = self._liens.get(recording_number)
            if current is None:
                return None
            updated = replace(current, updated_at=self._clock(), **changes)
            self._liens[recording_number] = updated
            return updated

    # Runs --------------------------------------------------------------

    def create_run(self, *, run_type: str, metadata: dict[str, Any] | None = None) -> PipelineRun:
        run = PipelineRun(
            id=uuid.uuid4(),
            run_type=run_type,
            status=RunStatus.RUNNING,
            started_at=self._clock(),
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._runs[run.id] = run
        return run

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
        with self._lock:
            current = self._runs.get(run_id)
            if current is None:
                return None
            updated = replace(
                current,
                status=status,
                ended_at=self._clock(),
                records_found=records_found,
                records_accepted=records_accepted,
                records_over_threshold=records_over_threshold,
                error_message=error_message,
                metadata={**current.metadata, **(metadata or {})},
            )
            self._runs[run_id] = updated
            return updated

    def get_run(self, run_id: uuid.UUID) -> PipelineRun | None:
        with self._lock:
            return self._runs.get(run_id)

    def recent_runs(self, limit: int = 20) -> list[PipelineRun]:
        with self._lock:
            ordered = list(reversed(list(self._runs.values())))
        return ordered[: max(1, limit)]

    def create_source_run(self, *, run_id: uuid.UUID, source: SourceConfig) -> SourceRun:
        source_run = SourceRun(
            id=uuid.uuid4(),
            run_id=run_id,
            source_id=source.id,
            source_name=source.name,
            status=RunStatus.RUNNING,
            started_at=self._clock(),
        )
        with self._lock:
            self._source_runs[source_run.id] = source_run
        return source_run

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
        with self._lock:
            current = self._source_runs.get(source_run_id)
            if current is None:
                return None
            updated = replace(
                current,
                status=status,
                ended_at=self._clock(),
                records_found=records_found,
                records_accepted=records_accepted,
                records_over_threshold=records_over_threshold,
                error_message=error_message,
            )
            self._source_runs[source_run_id] = updated
            return updated

    def source_runs_for(self, run_id: uuid.UUID) -> list[SourceRun]:
        with self._lock:
            return [item for item in self._source_runs.values() if item.run_id == run_id]

    # Audit -------------------------------------------------------------

    def append_audit(
        self,
        *,
        level: str,
        message: str,
        component: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            id=uuid.uuid4(),
            level=level,
            message=message,
            component=component,
            timestamp=self._clock(),
            metadata=metadata,
        )
        with self._lock:
            self._audit.append(entry)
        return entry

    def recent_audit(self, limit: int = 100, level: str | None = None) -> list[AuditEntry]:
        with self._lock:
            entries = list(reversed(self._audit))
        if level is not None:
            entries = [entry for entry in entries if entry.level == level]
        return entries[: max(1, limit)]

    def audit_by_date(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[AuditEntry]:
        with self._lock:
            entries = list(self._audit)
        return [
            entry
            for entry in entries
            if (date_from is None or entry.timestamp.date() >= date_from)
            and (date_to is None or entry.timestamp.date() <= date_to)
        ]
