"""
tests/test_export_service.py

ExportService row shaping for liens and audit history.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.domain.liens import AuditLevel, LienInput
from app.scraping.storage import InMemoryRecordStore
from app.services.export_service import AUDIT_FIELDS, LIEN_FIELDS, ExportService


@pytest.fixture()
def store() -> InMemoryRecordStore:
    store = InMemoryRecordStore(clock=lambda: datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc))
    for number, day in (("2026000003", 16), ("2026000001", 15), ("2026000002", 16)):
        store.create_or_get(
            LienInput(
                recording_number=number,
                record_date=date(2026, 10, day),
                debtor_name="Jane Doe",
                amount=Decimal("25000"),
            )
        )
    return store


def test_lien_rows_are_ordered_and_filtered(store: InMemoryRecordStore) -> None:
    result = ExportService(store=store).export_liens(date_from=date(2026, 10, 16))

    assert result.fields == LIEN_FIELDS
    assert [row["recording_number"] for row in result.rows] == ["2026000002", "2026000003"]
    assert result.rows[0]["amount"] == "25000.00"
    assert result.rows[0]["record_date"] == "2026-10-16"
    assert result.rows[0]["creditor_name"] is None


def test_audit_metadata_is_flattened_to_json(store: InMemoryRecordStore) -> None:
    store.append_audit(
        level=AuditLevel.ERROR,
        message="Failed to sync batch to Airtable",
        component="sync",
        metadata={"recording_numbers": ["2026000001"]},
    )
    store.append_audit(level=AuditLevel.INFO, message="plain", component="pipeline")

    result = ExportService(store=store).export_audit(date_from=date(2026, 10, 17), date_to=date(2026, 10, 17))

    assert result.fields == AUDIT_FIELDS
    assert len(result.rows) == 2
    assert json.loads(result.rows[0]["metadata"]) == {"recording_numbers": ["2026000001"]}
    assert result.rows[1]["metadata"] is None


def test_empty_window_returns_header_only(store: InMemoryRecordStore) -> None:
    result = ExportService(store=store).export_liens(date_from=date(2027, 1, 1))
    assert result.rows == []
    assert result.fields == LIEN_FIELDS
