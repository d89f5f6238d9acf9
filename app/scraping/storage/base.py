"""
Storage layer interfaces for sources, liens, runs, and audit history.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from app.domain.liens import (
    AuditEntry,
    DashboardStats,
    Lien,
    LienInput,
    PipelineRun,
    SourceRun,
)
from app.scraping.config.models import SourceConfig, SourceDescriptor

ACTIVE_LEAD_WINDOW_DAYS = 30


class SourceStore(ABC):
    """
    Persistence for registered recorder sources.
    """

    @abstractmethod
    def list_sources(self, *, active_only: bool = False) -> list[SourceConfig]:
        ...

    @abstractmethod
    def get_source(self, source_id: uuid.UUID) -> SourceConfig | None:
        ...

    @abstractmethod
    def add_source(
        self,
        *,
        name: str,
        jurisdiction: str,
        descriptor: SourceDescriptor,
        active: bool = True,
    ) -> SourceConfig:
        ...

    @abstractmethod
    def update_source(
        self,
        source_id: uuid.UUID,
        *,
        name: str | None = None,
        jurisdiction: str | None = None,
        descriptor: SourceDescriptor | None = None,
        active: bool | None = None,
    ) -> SourceConfig | None:
        """
        Apply the non-None changes and return the updated source.
        """


class RecordStore(ABC):
    """
    Persistence for liens, pipeline runs, and audit entries.

    Lien writes are keyed by recording number; the last write wins.
    """

    # Liens -------------------------------------------------------------

    @abstractmethod
    def create_or_get(self, lien: LienInput) -> tuple[Lien, bool]:
        """
        Insert a lien, or return the existing one with the same recording number.

        The boolean is True when a new record was created.
        """

    @abstractmethod
    def get_lien(self, lien_id: uuid.UUID) -> Lien | None:
        ...

    @abstractmethod
    def get_lien_by_key(self, recording_number: str) -> Lien | None:
        ...

    @abstractmethod
    def update_status(self, recording_number: str, status: str) -> Lien | None:
        ...

    @abstractmethod
    def update_external_id(self, recording_number: str, external_id: str) -> Lien | None:
        """
        Store the external record id and mark the lien synced.
        """

    @abstractmethod
    def update_enrichment(self, recording_number: str, data: dict[str, Any]) -> Lien | None:
        ...

    @abstractmethod
    def recent_liens(self, limit: int = 50) -> list[Lien]:
        ...

    @abstractmethod
    def liens_by_status(self, status: str, limit: int | None = None) -> list[Lien]:
        ...

    @abstractmethod
    def liens_by_date(self, date_from: date | None = None, date_to: date | None = None) -> list[Lien]:
        """
        Liens whose record date falls within the inclusive range.
        """

    @abstractmethod
    def pending_over_threshold(self, threshold: Decimal) -> list[Lien]:
        ...

    @abstractmethod
    def dashboard_stats(self, *, now: datetime) -> DashboardStats:
        ...

    # Runs --------------------------------------------------------------

    @abstractmethod
    def create_run(self, *, run_type: str, metadata: dict[str, Any] | None = None) -> PipelineRun:
        ...

    @abstractmethod
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
        ...

    @abstractmethod
    def get_run(self, run_id: uuid.UUID) -> PipelineRun | None:
        ...

    @abstractmethod
    def recent_runs(self, limit: int = 20) -> list[PipelineRun]:
        ...

    def latest_run(self) -> PipelineRun | None:
        runs = self.recent_runs(limit=1)
        return runs[0] if runs else None

    @abstractmethod
    def create_source_run(self, *, run_id: uuid.UUID, source: SourceConfig) -> SourceRun:
        ...

    @abstractmethod
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
        ...

    @abstractmethod
    def source_runs_for(self, run_id: uuid.UUID) -> list[SourceRun]:
        ...

    # Audit -------------------------------------------------------------

    @abstractmethod
    def append_audit(
        self,
        *,
        level: str,
        message: str,
        component: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry:
        ...

    @abstractmethod
    def recent_audit(self, limit: int = 100, level: str | None = None) -> list[AuditEntry]:
        ...

    @abstractmethod
    def audit_by_date(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[AuditEntry]:
        ...
