"""
app/services/sync_gateway.py

Pushes accepted liens to the external record service (Airtable).

Batches are split into sub-batches the service accepts in one request.
A failed sub-batch is logged and skipped; the remaining sub-batches are
still sent, and every created record id is written back to the store.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any

from app.config import SyncSettings, get_sync_settings
from app.connectors.airtable_connector import (
    ENRICHED_CONFIDENCE_SCORE,
    AirtableConnector,
    lien_to_fields,
)
from app.domain.errors import LienNotFoundError, SyncRejectedError, SyncRequestError
from app.domain.liens import Lien, LienStatus, SyncSummary
from app.scraping.config.models import SourceConfig
from app.scraping.storage import RecordStore, get_record_store
from app.services.audit_log import AuditLog, get_audit_log
from app.services.source_registry import get_source_registry

logger = logging.getLogger(__name__)

COMPONENT = "sync"


@dataclass(frozen=True)
class RetryOutcome:
    """
    Result of a single-record sync retry.
    """

    lien: Lien
    already_synced: bool
    summary: SyncSummary | None = None


class SyncGateway:
    def __init__(
        self,
        *,
        store: RecordStore,
        audit: AuditLog,
        settings: SyncSettings,
        connector: AirtableConnector | None = None,
        source_lookup: Callable[[uuid.UUID], SourceConfig | None] | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._audit = audit
        self._settings = settings
        self._connector = connector
        self._source_lookup = source_lookup
        self._today = today

    @property
    def is_configured(self) -> bool:
        return self._connector is not None

    def sync_batch(self, liens: Sequence[Lien]) -> SyncSummary:
        """
        Send liens in sub-batches and record the external ids that come back.
        """

        if not liens:
            return SyncSummary(attempted=0, synced=0)

        if self._connector is None:
            self._audit.error("Airtable not configured - skipping sync", component=COMPONENT)
            return SyncSummary(attempted=len(liens), synced=0, skipped=True)

        self._audit.info(f"Starting Airtable sync for {len(liens)} liens", component=COMPONENT)
        batch_id = self._today()
        synced = 0
        failed_batches = 0
        errors: list[str] = []

        for chunk in _chunks(liens, self._settings.batch_size):
            records = [self._fields_for(lien, batch_id) for lien in chunk]
            try:
                external_ids = self._connector.create_records(records)
            except SyncRequestError as exc:
                failed_batches += 1
                errors.append(str(exc))
                self._audit.error(
                    f"Failed to sync batch to Airtable: {exc}",
                    component=COMPONENT,
                    metadata={"recording_numbers": [lien.recording_number for lien in chunk]},
                )
                continue

            for lien, external_id in zip(chunk, external_ids):
                self._store.update_external_id(lien.recording_number, external_id)
            synced += len(chunk)
            self._audit.info(f"Synced batch to Airtable: {len(chunk)} records", component=COMPONENT)

        self._audit.success(
            f"Successfully synced {synced} liens to Airtable",
            component=COMPONENT,
            metadata={"attempted": len(liens), "failed_batches": failed_batches},
        )
        return SyncSummary(
            attempted=len(liens),
            synced=synced,
            failed_batches=failed_batches,
            errors=errors,
        )

    def retry_record(self, lien_id: uuid.UUID) -> RetryOutcome:
        lien = self._store.get_lien(lien_id)
        if lien is None:
            raise LienNotFoundError(f"Lien not found: {lien_id}")
        if lien.status == LienStatus.SYNCED:
            return RetryOutcome(lien=lien, already_synced=True)
        if not lien.document_url:
            raise SyncRejectedError(
                f"Lien {lien.recording_number} has no document reference and cannot be synced."
            )

        reset = self._store.update_status(lien.recording_number, LienStatus.PENDING) or lien
        summary = self.sync_batch([reset])
        refreshed = self._store.get_lien(lien_id) or reset
        return RetryOutcome(lien=refreshed, already_synced=False, summary=summary)

    def push_enrichment(
        self,
        lien_id: uuid.UUID,
        *,
        phone: str | None = None,
        email: str | None = None,
    ) -> Lien:
        """
        Store contact details on the lien and mirror them onto its external record.
        """

        lien = self._store.get_lien(lien_id)
        if lien is None:
            raise LienNotFoundError(f"Lien not found: {lien_id}")

        contact: dict[str, Any] = {}
        if phone:
            contact["phone"] = phone.strip()
        if email:
            contact["email"] = email.strip()
        if not contact:
            raise SyncRejectedError("Enrichment requires a phone number or an email address.")

        updated_at = datetime.now(timezone.utc).isoformat()
        updated = self._store.update_enrichment(
            lien.recording_number,
            {**contact, "updated_at": updated_at},
        ) or lien

        if self._connector is None or not lien.external_id:
            return updated

        fields: dict[str, Any] = {}
        if "phone" in contact:
            fields["Phone"] = contact["phone"]
            fields["Phone (All)"] = contact["phone"]
        if "email" in contact:
            fields["Email"] = contact["email"]
            fields["Email (All)"] = contact["email"]
        fields["Confidence Score"] = ENRICHED_CONFIDENCE_SCORE
        fields["Last Updated"] = updated_at

        try:
            self._connector.update_record(lien.external_id, fields)
        except SyncRequestError as exc:
            self._audit.error(f"Failed to update Airtable record: {exc}", component=COMPONENT)
            return updated

        self._audit.success(
            f"Updated Airtable record with enrichment data: {lien.recording_number}",
            component=COMPONENT,
        )
        return updated

    def _fields_for(self, lien: Lien, batch_id: date) -> dict[str, Any]:
        county_name: str | None = None
        if lien.source_id is not None and self._source_lookup is not None:
            source = self._source_lookup(lien.source_id)
            county_name = source.name if source is not None else None
        return lien_to_fields(lien, county_name=county_name, batch_id=batch_id)


def _chunks(items: Sequence[Lien], size: int) -> Iterator[Sequence[Lien]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


@lru_cache(maxsize=1)
def get_sync_gateway() -> SyncGateway:
    settings = get_sync_settings()
    connector = AirtableConnector(settings=settings) if settings.is_configured else None
    if connector is None:
        logger.warning("Airtable credentials not configured; sync will be skipped")
    return SyncGateway(
        store=get_record_store(),
        audit=get_audit_log(),
        settings=settings,
        connector=connector,
        source_lookup=get_source_registry().find,
    )
