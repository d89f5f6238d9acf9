"""
tests/conftest.py

Shared fixtures: in-memory stores, a recording Airtable stand-in, and a
source factory. Nothing here touches the network or a database.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from app.config import SyncSettings
from app.domain.errors import SyncRequestError
from app.scraping.config.models import SourceConfig
from app.scraping.storage import InMemoryRecordStore, InMemorySourceStore
from app.services.audit_log import AuditLog
from app.services.source_registry import SourceRegistry
from app.services.sync_gateway import SyncGateway

BATCH_DAY = date(2026, 10, 16)


def direct_descriptor(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "strategy": "direct",
        "search_url": "https://recorder.example.gov/search?from={from_date}&to={to_date}",
        "document_url_template": "https://recorder.example.gov/docs/{identifier}.pdf",
        "identifier_pattern": r"^\d{10,12}$",
        "delays": {"page_load": 0, "between_requests": 0, "document_load": 0},
    }
    payload.update(overrides)
    return payload


class FakeAirtable:
    """
    Records every create/update call; can fail selected create calls.
    """

    def __init__(self, *, fail_calls: set[int] | None = None) -> None:
        self.create_calls: list[list[dict[str, Any]]] = []
        self.update_calls: list[tuple[str, dict[str, Any]]] = []
        self._fail_calls = fail_calls or set()
        self._next_id = 0

    def create_records(self, records: list[dict[str, Any]]) -> list[str]:
        call_index = len(self.create_calls)
        self.create_calls.append(list(records))
        if call_index in self._fail_calls:
            raise SyncRequestError("airtable: request rejected with status 422: INVALID_VALUE")
        ids = []
        for _ in records:
            self._next_id += 1
            ids.append(f"rec{self._next_id:05d}")
        return ids

    def update_record(self, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        self.update_calls.append((record_id, dict(fields)))
        return {"id": record_id, "fields": fields}


@pytest.fixture()
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def source_store() -> InMemorySourceStore:
    return InMemorySourceStore()


@pytest.fixture()
def audit(record_store: InMemoryRecordStore) -> AuditLog:
    return AuditLog(store=record_store)


@pytest.fixture()
def source_registry(source_store: InMemorySourceStore) -> SourceRegistry:
    return SourceRegistry(store=source_store)


@pytest.fixture()
def make_source(source_registry: SourceRegistry) -> Callable[..., SourceConfig]:
    """Register a valid direct-strategy source with the given name."""

    def _make(name: str, *, active: bool = True, **descriptor_overrides: Any) -> SourceConfig:
        return source_registry.create(
            name=name,
            jurisdiction="az",
            descriptor=direct_descriptor(**descriptor_overrides),
            active=active,
        )

    return _make


@pytest.fixture()
def fake_airtable() -> FakeAirtable:
    return FakeAirtable()


@pytest.fixture()
def sync_gateway(
    record_store: InMemoryRecordStore,
    audit: AuditLog,
    source_registry: SourceRegistry,
    fake_airtable: FakeAirtable,
) -> SyncGateway:
    return SyncGateway(
        store=record_store,
        audit=audit,
        settings=SyncSettings(api_key="key", base_id="app123"),
        connector=fake_airtable,  # type: ignore[arg-type]
        source_lookup=source_registry.find,
        today=lambda: BATCH_DAY,
    )


@pytest.fixture()
def airtable_factory() -> type[FakeAirtable]:
    return FakeAirtable


@pytest.fixture()
def descriptor_factory() -> Callable[..., dict[str, Any]]:
    return direct_descriptor
