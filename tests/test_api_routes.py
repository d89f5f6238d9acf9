"""
tests/test_api_routes.py

HTTP contract tests for the pipeline, sources, schedule, liens, audit and
export routers. The app is assembled from the routers with every service
dependency overridden to in-memory instances.
"""

from __future__ import annotations

import csv
import io
import uuid
from collections.abc import Iterator
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import (
    audit_router,
    export_router,
    liens_router,
    pipeline_router,
    schedule_router,
    sources_router,
)
from app.config import PipelineSettings, ScheduleDefaults
from app.domain.errors import PipelineAlreadyRunningError
from app.domain.liens import LienInput, LienStatus, RawDocument
from app.scraping.engine import LienDiscoveryEngine
from app.scraping.storage import get_record_store
from app.services.audit_log import get_audit_log
from app.services.export_service import ExportService, get_export_service
from app.services.pipeline_orchestrator import PipelineOrchestrator, get_pipeline_orchestrator
from app.services.schedule_service import ScheduleService, get_schedule_service
from app.services.source_registry import get_source_registry
from app.services.sync_gateway import get_sync_gateway

FIXED_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class SingleDocumentAcquirer:
    documents_failed = 0

    def __init__(self, identifier: str) -> None:
        self._identifier = identifier

    def acquire(self, *, date_range, should_stop) -> Iterator[RawDocument]:
        yield RawDocument(
            identifier=self._identifier,
            content=b"JANE DOE\nAmount Claimed: $42,000.00\n",
            content_type="text/plain",
            url=f"https://recorder.example.gov/docs/{self._identifier}.pdf",
        )

    def close(self) -> None:
        return None


class SingleDocumentRegistry:
    def create_acquirer(self, *, source, **kwargs: Any) -> SingleDocumentAcquirer:
        return SingleDocumentAcquirer("20260099999")


class BusyOrchestrator:
    def trigger(self, **kwargs: Any):
        raise PipelineAlreadyRunningError("A pipeline run is already in progress.")


@pytest.fixture()
def orchestrator(record_store, audit, source_registry, sync_gateway) -> PipelineOrchestrator:
    settings = PipelineSettings(amount_threshold=Decimal("20000"))
    return PipelineOrchestrator(
        settings=settings,
        store=record_store,
        audit=audit,
        source_registry=source_registry,
        sync_gateway=sync_gateway,
        engine=LienDiscoveryEngine(
            settings=settings,
            store=record_store,
            audit=audit,
            registry=SingleDocumentRegistry(),  # type: ignore[arg-type]
        ),
    )


@pytest.fixture()
def app(record_store, audit, source_registry, sync_gateway, orchestrator) -> FastAPI:
    application = FastAPI()
    for router in (
        pipeline_router,
        sources_router,
        schedule_router,
        liens_router,
        audit_router,
        export_router,
    ):
        application.include_router(router)

    schedule_service = ScheduleService(defaults=ScheduleDefaults(), clock=lambda: FIXED_NOW)
    application.dependency_overrides.update(
        {
            get_record_store: lambda: record_store,
            get_audit_log: lambda: audit,
            get_source_registry: lambda: source_registry,
            get_sync_gateway: lambda: sync_gateway,
            get_pipeline_orchestrator: lambda: orchestrator,
            get_schedule_service: lambda: schedule_service,
            get_export_service: lambda: ExportService(store=record_store),
        }
    )
    return application


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _seed_lien(record_store, number: str = "20260012345", **overrides):
    payload = {
        "recording_number": number,
        "record_date": date(2026, 10, 16),
        "debtor_name": "John Q Public",
        "amount": Decimal("25000.00"),
        "document_url": f"https://recorder.example.gov/docs/{number}.pdf",
    }
    payload.update(overrides)
    lien, _ = record_store.create_or_get(LienInput(**payload))
    return lien


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TestPipelineRoutes:
    def test_trigger_runs_in_background(self, client: TestClient, make_source) -> None:
        make_source("Alpha County")

        response = client.post("/pipeline/trigger", json={"from_date": "2026-10-15", "to_date": "2026-10-16"})

        assert response.status_code == 202
        run_id = response.json()["run_id"]

        detail = client.get(f"/pipeline/runs/{run_id}")
        assert detail.status_code == 200
        body = detail.json()
        assert body["run"]["status"] == "completed"
        assert body["run"]["records_accepted"] == 1
        assert body["run"]["metadata"]["date_range"] == {"from_date": "2026-10-15", "to_date": "2026-10-16"}
        assert [item["source_name"] for item in body["source_runs"]] == ["Alpha County"]

        runs = client.get("/pipeline/runs", params={"limit": 5}).json()["runs"]
        assert [run["run_id"] for run in runs] == [run_id]

    def test_trigger_without_body_defaults_to_previous_day(self, client: TestClient) -> None:
        response = client.post("/pipeline/trigger")
        assert response.status_code == 202
        assert response.json()["metadata"]["date_range"]["from_date"] == (
            response.json()["metadata"]["date_range"]["to_date"]
        )

    def test_inverted_range_is_rejected(self, client: TestClient) -> None:
        response = client.post("/pipeline/trigger", json={"from_date": "2026-10-16", "to_date": "2026-10-01"})
        assert response.status_code == 400

    def test_trigger_while_running_conflicts(self, app: FastAPI, client: TestClient) -> None:
        app.dependency_overrides[get_pipeline_orchestrator] = lambda: BusyOrchestrator()
        response = client.post("/pipeline/trigger")
        assert response.status_code == 409

    def test_stop_and_status_when_idle(self, client: TestClient) -> None:
        stop = client.post("/pipeline/stop")
        assert stop.status_code == 202
        assert stop.json()["stop_requested"] is False

        status = client.get("/pipeline/status").json()
        assert status == {"is_running": False, "status": "idle", "latest_run": None}

    def test_unknown_run_is_404(self, client: TestClient) -> None:
        assert client.get(f"/pipeline/runs/{uuid.uuid4()}").status_code == 404


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class TestSourceRoutes:
    def test_create_list_and_deactivate(self, client: TestClient, descriptor_factory) -> None:
        created = client.post(
            "/sources",
            json={"name": "Pima County", "jurisdiction": "az", "descriptor": descriptor_factory()},
        )
        assert created.status_code == 201
        source = created.json()
        assert source["jurisdiction"] == "AZ"
        assert source["strategy"] == "direct"
        assert source["descriptor"]["delays"] == {"page_load": 0, "between_requests": 0, "document_load": 0}

        patched = client.patch(f"/sources/{source['id']}", json={"active": False})
        assert patched.status_code == 200
        assert patched.json()["active"] is False

        listed = client.get("/sources").json()
        assert [item["id"] for item in listed] == [source["id"]]

    def test_invalid_descriptor_returns_every_problem(self, client: TestClient) -> None:
        response = client.post(
            "/sources",
            json={"name": "Broken", "jurisdiction": "AZ", "descriptor": {"strategy": "fax"}},
        )
        assert response.status_code == 400
        problems = response.json()["detail"]
        assert isinstance(problems, list)
        assert len(problems) >= 3

    def test_unknown_source_is_404(self, client: TestClient) -> None:
        assert client.get(f"/sources/{uuid.uuid4()}").status_code == 404
        assert client.patch(f"/sources/{uuid.uuid4()}", json={"active": True}).status_code == 404


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


class TestScheduleRoutes:
    def test_read_and_update(self, client: TestClient) -> None:
        current = client.get("/schedule").json()
        assert current["cron_expression"] == "0 6 * * *"
        assert current["timezone"] == "PT"

        updated = client.post("/schedule", json={"hour": 5, "minute": 45, "timezone": "CT"})
        assert updated.status_code == 200
        assert updated.json()["iana_timezone"] == "America/Chicago"
        assert updated.json()["cron_expression"] == "45 5 * * *"

    def test_unknown_timezone_is_400(self, client: TestClient) -> None:
        response = client.post("/schedule", json={"hour": 5, "minute": 0, "timezone": "MT"})
        assert response.status_code == 400

    def test_out_of_range_hour_is_422(self, client: TestClient) -> None:
        response = client.post("/schedule", json={"hour": 24, "minute": 0, "timezone": "PT"})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Liens and dashboard
# ---------------------------------------------------------------------------


class TestLienRoutes:
    def test_status_filter(self, client: TestClient, record_store) -> None:
        _seed_lien(record_store)

        pending = client.get("/liens").json()["liens"]
        assert [lien["recording_number"] for lien in pending] == ["20260012345"]
        assert client.get("/liens", params={"status": "synced"}).json()["liens"] == []
        assert client.get("/liens", params={"status": "lost"}).status_code == 400

    def test_retry_sync(self, client: TestClient, record_store, fake_airtable) -> None:
        lien = _seed_lien(record_store)

        first = client.post(f"/liens/{lien.id}/retry-sync")
        assert first.status_code == 200
        assert first.json()["message"] == "Lien synced."
        assert first.json()["lien"]["status"] == LienStatus.SYNCED

        second = client.post(f"/liens/{lien.id}/retry-sync")
        assert second.json()["already_synced"] is True
        assert len(fake_airtable.create_calls) == 1

    def test_retry_sync_errors(self, client: TestClient, record_store) -> None:
        no_document = _seed_lien(record_store, "20260054321", document_url=None)
        assert client.post(f"/liens/{uuid.uuid4()}/retry-sync").status_code == 404
        assert client.post(f"/liens/{no_document.id}/retry-sync").status_code == 400

    def test_enrichment(self, client: TestClient, record_store) -> None:
        lien = _seed_lien(record_store)

        response = client.post(f"/liens/{lien.id}/enrichment", json={"phone": "602-555-0100"})
        assert response.status_code == 200
        assert response.json()["enrichment_data"]["phone"] == "602-555-0100"

        assert client.post(f"/liens/{lien.id}/enrichment", json={}).status_code == 400
        assert client.post(f"/liens/{uuid.uuid4()}/enrichment", json={"email": "a@b.c"}).status_code == 404

    def test_dashboard_stats(self, client: TestClient, record_store) -> None:
        lien = _seed_lien(record_store)
        record_store.update_external_id(lien.recording_number, "rec1")

        stats = client.get("/dashboard/stats").json()

        assert stats == {"todays_liens": 1, "synced": 1, "mailers_sent": 0, "active_leads": 1}


# ---------------------------------------------------------------------------
# Audit and export
# ---------------------------------------------------------------------------


class TestAuditAndExport:
    def test_audit_listing_and_level_filter(self, client: TestClient, audit) -> None:
        audit.info("Pipeline run started", component="pipeline")
        audit.error("Source 'Bravo County' failed: boom", component="pipeline")

        entries = client.get("/audit").json()["entries"]
        assert [entry["level"] for entry in entries] == ["error", "info"]
        errors = client.get("/audit", params={"level": "ERROR"}).json()["entries"]
        assert len(errors) == 1
        assert client.get("/audit", params={"level": "debug"}).status_code == 400

    def test_liens_csv(self, client: TestClient, record_store) -> None:
        _seed_lien(record_store)

        response = client.get("/export/liens.csv", params={"date_from": "2026-10-16"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["x-row-count"] == "1"
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert rows[0]["recording_number"] == "20260012345"
        assert rows[0]["amount"] == "25000.00"
        assert rows[0]["external_id"] == ""

    def test_export_rejects_inverted_window(self, client: TestClient) -> None:
        response = client.get("/export/audit.csv", params={"date_from": "2026-10-17", "date_to": "2026-10-01"})
        assert response.status_code == 400
