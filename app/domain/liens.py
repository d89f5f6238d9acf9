"""
app/domain/liens.py

Domain models for lien discovery, pipeline runs, and audit history.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any


class LienStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    SYNCED = "synced"
    MAILER_SENT = "mailer_sent"
    COMPLETED = "completed"

    ALL = (PENDING, PROCESSING, SYNCED, MAILER_SENT, COMPLETED)


class RunType:
    SCHEDULED = "scheduled"
    MANUAL = "manual"


class RunStatus:
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class AuditLevel:
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"

    ALL = (INFO, WARNING, ERROR, SUCCESS)


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive search window handed to document acquisition.
    """

    date_from: date
    date_to: date

    def __post_init__(self) -> None:
        if self.date_from > self.date_to:
            raise ValueError(
                f"date_from {self.date_from.isoformat()} is after date_to {self.date_to.isoformat()}."
            )

    @classmethod
    def previous_day(cls, today: date | None = None) -> DateRange:
        reference = today or date.today()
        yesterday = reference - timedelta(days=1)
        return cls(date_from=yesterday, date_to=yesterday)

    @classmethod
    def resolve(
        cls,
        *,
        date_from: date | None = None,
        date_to: date | None = None,
        today: date | None = None,
    ) -> DateRange:
        """
        Fill missing bounds from the previous calendar day.
        """

        if date_from is None and date_to is None:
            return cls.previous_day(today)
        start = date_from or date_to
        end = date_to or date_from
        return cls(date_from=start, date_to=end)

    def to_payload(self) -> dict[str, str]:
        return {"from_date": self.date_from.isoformat(), "to_date": self.date_to.isoformat()}


@dataclass(frozen=True)
class RawDocument:
    """
    One fetched document with its source identifier.
    """

    identifier: str
    content: bytes
    content_type: str
    url: str


@dataclass(frozen=True)
class LienInput:
    """
    Extracted lien candidate ready for persistence.
    """

    recording_number: str
    record_date: date
    debtor_name: str
    amount: Decimal
    debtor_address: str | None = None
    creditor_name: str | None = None
    creditor_address: str | None = None
    document_url: str | None = None
    source_id: uuid.UUID | None = None


@dataclass(frozen=True)
class Lien:
    """
    Persisted lien record with lifecycle state.
    """

    id: uuid.UUID
    recording_number: str
    record_date: date
    debtor_name: str
    amount: Decimal
    status: str
    created_at: datetime
    updated_at: datetime
    debtor_address: str | None = None
    creditor_name: str | None = None
    creditor_address: str | None = None
    document_url: str | None = None
    source_id: uuid.UUID | None = None
    external_id: str | None = None
    enrichment_data: dict[str, Any] | None = None


@dataclass(frozen=True)
class PipelineRun:
    id: uuid.UUID
    run_type: str
    status: str
    started_at: datetime
    ended_at: datetime | None = None
    records_found: int = 0
    records_accepted: int = 0
    records_over_threshold: int = 0
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SourceRun:
    """
    Per-source slice of a pipeline run.
    """

    id: uuid.UUID
    run_id: uuid.UUID
    source_id: uuid.UUID | None
    source_name: str
    status: str
    started_at: datetime
    ended_at: datetime | None = None
    records_found: int = 0
    records_accepted: int = 0
    records_over_threshold: int = 0
    error_message: str | None = None


@dataclass(frozen=True)
class AuditEntry:
    id: uuid.UUID
    level: str
    message: str
    component: str
    timestamp: datetime
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class DashboardStats:
    todays_liens: int
    synced: int
    mailers_sent: int
    active_leads: int


@dataclass(frozen=True)
class SourceRunSummary:
    """
    Outcome of processing one source inside a run.
    """

    source_id: uuid.UUID
    source_name: str
    status: str
    records_found: int
    records_accepted: int
    records_over_threshold: int
    documents_failed: int = 0
    error: str | None = None


@dataclass(frozen=True)
class SyncSummary:
    """
    Aggregate result of pushing a batch to the external record service.
    """

    attempted: int
    synced: int
    failed_batches: int = 0
    skipped: bool = False
    errors: list[str] = field(default_factory=list)
