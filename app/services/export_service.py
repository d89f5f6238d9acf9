"""
app/services/export_service.py

Tabular exports of liens and audit history.

Supports two datasets:

    liens : lien records, filtered on record date
    audit : audit entries, filtered on the entry timestamp's date

Rows are flat dicts of scalars; the router owns serialisation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Any

from app.domain.liens import AuditEntry, Lien
from app.scraping.storage import RecordStore, get_record_store

LIEN_FIELDS: list[str] = [
    "id",
    "recording_number",
    "record_date",
    "debtor_name",
    "debtor_address",
    "amount",
    "creditor_name",
    "creditor_address",
    "document_url",
    "status",
    "external_id",
    "created_at",
]

AUDIT_FIELDS: list[str] = ["id", "timestamp", "level", "component", "message", "metadata"]


@dataclass
class ExportResult:
    """
    Flat tabular data ready for CSV serialisation.

    Attributes
    ----------
    rows:   Flat dict per row; values are strings, numbers, or None.
    fields: Ordered column names.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)


class ExportService:
    def __init__(self, *, store: RecordStore) -> None:
        self._store = store

    def export_liens(self, *, date_from: date | None = None, date_to: date | None = None) -> ExportResult:
        liens = sorted(
            self._store.liens_by_date(date_from, date_to),
            key=lambda lien: (lien.record_date, lien.recording_number),
        )
        return ExportResult(rows=[_lien_row(lien) for lien in liens], fields=list(LIEN_FIELDS))

    def export_audit(self, *, date_from: date | None = None, date_to: date | None = None) -> ExportResult:
        entries = sorted(self._store.audit_by_date(date_from, date_to), key=lambda entry: entry.timestamp)
        return ExportResult(rows=[_audit_row(entry) for entry in entries], fields=list(AUDIT_FIELDS))


def _lien_row(lien: Lien) -> dict[str, Any]:
    return {
        "id": str(lien.id),
        "recording_number": lien.recording_number,
        "record_date": lien.record_date.isoformat(),
        "debtor_name": lien.debtor_name,
        "debtor_address": lien.debtor_address,
        "amount": f"{lien.amount:.2f}",
        "creditor_name": lien.creditor_name,
        "creditor_address": lien.creditor_address,
        "document_url": lien.document_url,
        "status": lien.status,
        "external_id": lien.external_id,
        "created_at": lien.created_at.isoformat(),
    }


def _audit_row(entry: AuditEntry) -> dict[str, Any]:
    # Nested metadata is serialised to a JSON string column.
    return {
        "id": str(entry.id),
        "timestamp": entry.timestamp.isoformat(),
        "level": entry.level,
        "component": entry.component,
        "message": entry.message,
        "metadata": json.dumps(entry.metadata, default=str, sort_keys=True) if entry.metadata else None,
    }


@lru_cache(maxsize=1)
def get_export_service() -> ExportService:
    return ExportService(store=get_record_store())
