"""
Lien discovery engine.

Processes one source at a time: acquire documents, extract candidate liens,
apply the amount threshold, and persist what qualifies. A failing document is
logged and skipped, and a source failure is recorded on its sub-run and never
propagates to the caller.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

import requests

from app.config import PipelineSettings
from app.domain.liens import DateRange, RawDocument, RunStatus, SourceRunSummary
from app.extraction import DocumentTextExtractor, FieldExtractor
from app.scraping.base import DocumentAcquirer
from app.scraping.config.models import SourceConfig
from app.scraping.logging_utils import log_event
from app.scraping.rate_limiter import DomainRateLimiter
from app.scraping.registry import AcquirerRegistry
from app.scraping.storage import RecordStore
from app.services.audit_log import AuditLog

logger = logging.getLogger(__name__)

COMPONENT = "pipeline"
MAX_ERROR_LENGTH = 2000

OUTCOME_NOT_EXTRACTED = "not_extracted"
OUTCOME_BELOW_THRESHOLD = "below_threshold"
OUTCOME_EXISTING = "existing"
OUTCOME_CREATED = "created"


def format_error(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"[:MAX_ERROR_LENGTH]


class LienDiscoveryEngine:
    """
    Runs acquisition and extraction for a single source inside a run.
    """

    def __init__(
        self,
        *,
        settings: PipelineSettings,
        store: RecordStore,
        audit: AuditLog,
        registry: AcquirerRegistry | None = None,
        text_extractor: DocumentTextExtractor | None = None,
        field_extractor: FieldExtractor | None = None,
        session: requests.Session | None = None,
        rate_limiter: DomainRateLimiter | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._audit = audit
        self._registry = registry or AcquirerRegistry()
        self._text_extractor = text_extractor or DocumentTextExtractor(
            min_text_length=settings.min_text_length,
            ocr_timeout_seconds=settings.ocr_timeout_seconds,
        )
        self._field_extractor = field_extractor or FieldExtractor()
        self._session = session or requests.Session()
        self._rate_limiter = rate_limiter or DomainRateLimiter()

    def process_source(
        self,
        *,
        run_id: uuid.UUID,
        source: SourceConfig,
        date_range: DateRange,
        should_stop: Callable[[], bool],
    ) -> SourceRunSummary:
        source_run = self._store.create_source_run(run_id=run_id, source=source)
        records_found = 0
        records_accepted = 0
        records_over_threshold = 0
        documents_failed = 0
        acquirer: DocumentAcquirer | None = None

        try:
            acquirer = self._registry.create_acquirer(
                source=source,
                settings=self._settings,
                session=self._session,
                rate_limiter=self._rate_limiter,
            )
            for document in acquirer.acquire(date_range=date_range, should_stop=should_stop):
                try:
                    outcome = self._process_document(document, source=source, date_range=date_range)
                except Exception as exc:
                    documents_failed += 1
                    log_event(
                        logger,
                        logging.WARNING,
                        "lien_document_failed",
                        source=source.name,
                        identifier=document.identifier,
                        error=format_error(exc),
                    )
                    continue

                if outcome == OUTCOME_NOT_EXTRACTED:
                    continue
                records_found += 1
                if outcome == OUTCOME_BELOW_THRESHOLD:
                    continue
                records_over_threshold += 1
                if outcome == OUTCOME_CREATED:
                    records_accepted += 1
        except Exception as exc:
            error = format_error(exc)
            self._store.finish_source_run(
                source_run.id,
                status=RunStatus.FAILED,
                records_found=records_found,
                records_accepted=records_accepted,
                records_over_threshold=records_over_threshold,
                error_message=error,
            )
            self._audit.error(
                f"Source '{source.name}' failed: {error}",
                component=COMPONENT,
                metadata={"run_id": str(run_id), "source_id": str(source.id)},
            )
            return SourceRunSummary(
                source_id=source.id,
                source_name=source.name,
                status=RunStatus.FAILED,
                records_found=records_found,
                records_accepted=records_accepted,
                records_over_threshold=records_over_threshold,
                documents_failed=documents_failed + (acquirer.documents_failed if acquirer is not None else 0),
                error=error,
            )
        finally:
            if acquirer is not None:
                _close_quietly(acquirer, source_name=source.name)

        self._store.finish_source_run(
            source_run.id,
            status=RunStatus.COMPLETED,
            records_found=records_found,
            records_accepted=records_accepted,
            records_over_threshold=records_over_threshold,
        )
        self._audit.info(
            f"Source '{source.name}' completed: {records_found} found, "
            f"{records_over_threshold} over threshold, {records_accepted} new",
            component=COMPONENT,
            metadata={
                "run_id": str(run_id),
                "source_id": str(source.id),
                "documents_failed": documents_failed + acquirer.documents_failed,
            },
        )
        return SourceRunSummary(
            source_id=source.id,
            source_name=source.name,
            status=RunStatus.COMPLETED,
            records_found=records_found,
            records_accepted=records_accepted,
            records_over_threshold=records_over_threshold,
            documents_failed=documents_failed + acquirer.documents_failed,
        )

    def _process_document(self, document: RawDocument, *, source: SourceConfig, date_range: DateRange) -> str:
        text = self._text_extractor.extract_text(document.content, document.content_type)
        candidate = self._field_extractor.extract(
            text,
            identifier=document.identifier,
            fallback_date=date_range.date_to,
            document_url=document.url,
            patterns=source.descriptor.patterns,
            source_id=source.id,
        )
        if candidate is None:
            log_event(
                logger,
                logging.INFO,
                "lien_not_extracted",
                source=source.name,
                identifier=document.identifier,
            )
            return OUTCOME_NOT_EXTRACTED

        if candidate.amount < self._settings.amount_threshold:
            log_event(
                logger,
                logging.INFO,
                "lien_below_threshold",
                source=source.name,
                recording_number=candidate.recording_number,
                amount=candidate.amount,
            )
            return OUTCOME_BELOW_THRESHOLD

        _, created = self._store.create_or_get(candidate)
        return OUTCOME_CREATED if created else OUTCOME_EXISTING


def _close_quietly(acquirer: DocumentAcquirer, *, source_name: str) -> None:
    try:
        acquirer.close()
    except Exception as exc:
        log_event(logger, logging.WARNING, "acquirer_close_failed", source=source_name, error=str(exc))
