"""
app/services/pipeline_orchestrator.py

Single-flight coordination of pipeline runs.

Run lifecycle:
    idle -> running -> completed | failed

Only one run is active per process. A trigger while a run holds the guard
raises PipelineAlreadyRunningError; nothing is queued. The guard is always
released when the run body exits, including on failure.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks

from app.config import PipelineSettings, get_pipeline_settings
from app.domain.errors import PipelineAlreadyRunningError
from app.domain.liens import DateRange, PipelineRun, RunStatus, RunType, SourceRun, SourceRunSummary
from app.scraping.engine import LienDiscoveryEngine, format_error
from app.scraping.storage import RecordStore, get_record_store
from app.services.audit_log import AuditLog, get_audit_log
from app.services.source_registry import SourceRegistry, get_source_registry
from app.services.sync_gateway import SyncGateway, get_sync_gateway

logger = logging.getLogger(__name__)

COMPONENT = "pipeline"
IDLE_STATUS = "idle"


class PipelineTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


@dataclass(frozen=True)
class PipelineStatus:
    is_running: bool
    status: str
    latest_run: PipelineRun | None = None


class PipelineOrchestrator:
    """
    Owns the run guard, the stop flag, and the run algorithm.
    """

    def __init__(
        self,
        *,
        settings: PipelineSettings,
        store: RecordStore,
        audit: AuditLog,
        source_registry: SourceRegistry,
        sync_gateway: SyncGateway,
        engine: LienDiscoveryEngine,
    ) -> None:
        self._settings = settings
        self._store = store
        self._audit = audit
        self._source_registry = source_registry
        self._sync_gateway = sync_gateway
        self._engine = engine
        self._guard = threading.Lock()
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._guard.locked()

    def trigger(
        self,
        *,
        run_type: str = RunType.MANUAL,
        date_range: DateRange | None = None,
        executor: PipelineTaskExecutor | None = None,
    ) -> PipelineRun:
        """
        Start a run and return its record.

        With an executor the run body is submitted and this returns at once;
        without one the run executes on the calling thread.
        """

        if not self._guard.acquire(blocking=False):
            raise PipelineAlreadyRunningError("A pipeline run is already in progress.")

        resolved = date_range or DateRange.previous_day()
        try:
            self._stop_event.clear()
            run = self._store.create_run(
                run_type=run_type,
                metadata={"date_range": resolved.to_payload()},
            )
        except Exception:
            self._guard.release()
            raise

        if executor is None:
            self._execute(run.id, run_type, resolved)
            return self._store.get_run(run.id) or run

        try:
            executor.submit(self._execute, run.id, run_type, resolved)
        except Exception:
            self._store.finish_run(
                run.id,
                status=RunStatus.FAILED,
                records_found=0,
                records_accepted=0,
                records_over_threshold=0,
                error_message="Failed to schedule pipeline run.",
            )
            self._guard.release()
            raise
        return run

    def request_stop(self) -> bool:
        """
        Ask the active run to stop at the next source or document boundary.
        """

        if not self.is_running:
            return False
        self._stop_event.set()
        self._audit.warning("Stop requested for the active pipeline run", component=COMPONENT)
        return True

    def status(self) -> PipelineStatus:
        latest = self._store.latest_run()
        if self.is_running:
            return PipelineStatus(is_running=True, status=RunStatus.RUNNING, latest_run=latest)
        return PipelineStatus(
            is_running=False,
            status=latest.status if latest is not None else IDLE_STATUS,
            latest_run=latest,
        )

    def get_run(self, run_id: uuid.UUID) -> tuple[PipelineRun, list[SourceRun]] | None:
        run = self._store.get_run(run_id)
        if run is None:
            return None
        return run, self._store.source_runs_for(run_id)

    def recent_runs(self, *, limit: int = 20) -> list[PipelineRun]:
        return self._store.recent_runs(limit=limit)

    def _execute(self, run_id: uuid.UUID, run_type: str, date_range: DateRange) -> None:
        records_found = 0
        records_accepted = 0
        records_over_threshold = 0
        summaries: list[SourceRunSummary] = []
        stopped = False

        try:
            self._audit.info(
                f"Pipeline run started ({run_type}) for {date_range.date_from.isoformat()}"
                f" to {date_range.date_to.isoformat()}",
                component=COMPONENT,
                metadata={"run_id": str(run_id)},
            )
            sources = self._source_registry.list_active()
            if not sources:
                self._audit.warning("No active sources configured", component=COMPONENT)
                self._store.finish_run(
                    run_id,
                    status=RunStatus.COMPLETED,
                    records_found=0,
                    records_accepted=0,
                    records_over_threshold=0,
                    metadata={"stopped": False, "sources": []},
                )
                return

            for source in sources:
                if self._stop_event.is_set():
                    break
                summary = self._engine.process_source(
                    run_id=run_id,
                    source=source,
                    date_range=date_range,
                    should_stop=self._stop_event.is_set,
                )
                summaries.append(summary)
                records_found += summary.records_found
                records_accepted += summary.records_accepted

            stopped = self._stop_event.is_set()
            if stopped:
                self._audit.warning("Pipeline run stopped before all sources finished", component=COMPONENT)

            batch = self._store.pending_over_threshold(self._settings.amount_threshold)
            records_over_threshold = len(batch)
            sync_summary = self._sync_gateway.sync_batch(batch)

            self._store.finish_run(
                run_id,
                status=RunStatus.COMPLETED,
                records_found=records_found,
                records_accepted=records_accepted,
                records_over_threshold=records_over_threshold,
                metadata={
                    "stopped": stopped,
                    "sources": [_summary_payload(summary) for summary in summaries],
                    "sync": {
                        "attempted": sync_summary.attempted,
                        "synced": sync_summary.synced,
                        "failed_batches": sync_summary.failed_batches,
                        "skipped": sync_summary.skipped,
                    },
                },
            )
            self._audit.success(
                f"Pipeline run completed: {records_found} found, {records_accepted} new, "
                f"{sync_summary.synced} synced",
                component=COMPONENT,
                metadata={"run_id": str(run_id)},
            )
        except Exception as exc:
            error = format_error(exc)
            logger.exception("Pipeline run failed run_id=%s", run_id)
            try:
                self._store.finish_run(
                    run_id,
                    status=RunStatus.FAILED,
                    records_found=records_found,
                    records_accepted=records_accepted,
                    records_over_threshold=records_over_threshold,
                    error_message=error,
                    metadata={"stopped": stopped, "sources": [_summary_payload(s) for s in summaries]},
                )
            except Exception:
                logger.exception("Failed to persist failed run state run_id=%s", run_id)
            self._audit.error(
                f"Pipeline run failed: {error}",
                component=COMPONENT,
                metadata={"run_id": str(run_id)},
            )
        finally:
            self._guard.release()


def _summary_payload(summary: SourceRunSummary) -> dict[str, Any]:
    payload = asdict(summary)
    payload["source_id"] = str(summary.source_id)
    return payload


@lru_cache(maxsize=1)
def get_pipeline_orchestrator() -> PipelineOrchestrator:
    """
    Build and cache the process-wide orchestrator.
    """

    settings = get_pipeline_settings()
    store = get_record_store()
    audit = get_audit_log()
    return PipelineOrchestrator(
        settings=settings,
        store=store,
        audit=audit,
        source_registry=get_source_registry(),
        sync_gateway=get_sync_gateway(),
        engine=LienDiscoveryEngine(settings=settings, store=store, audit=audit),
    )
