from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from decimal import Decimal, InvalidOperation

from fastapi import FastAPI

from app.schemas.health import HealthResponse

_ALLOWED_STORAGE_BACKENDS = ("sqlalchemy", "memory")
_ALLOWED_SCHEDULE_TIMEZONES = ("PT", "CT", "ET")


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - PIPELINE_STORAGE_BACKEND must be 'sqlalchemy' (default) or 'memory'.
    - A database URL is required unless the memory backend is selected.
    - PIPELINE_AMOUNT_THRESHOLD, when set, must be a non-negative number.
    - SCHEDULE_DEFAULT_TIMEZONE, when set, must be one of PT, CT, ET.
    - Airtable credentials are optional; without them sync is skipped.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Storage backend -----------------------------------------------
    backend = os.getenv("PIPELINE_STORAGE_BACKEND", "sqlalchemy").strip().lower()
    if backend not in _ALLOWED_STORAGE_BACKENDS:
        errors.append(
            f"PIPELINE_STORAGE_BACKEND='{backend}' is not valid. "
            f"Allowed values: {list(_ALLOWED_STORAGE_BACKENDS)}."
        )

    # --- Database URL ---------------------------------------------------
    if backend == "sqlalchemy":
        database_url = os.getenv("DATABASE_URL", "").strip()
        cloud_database_url = os.getenv("CLOUD_DATABASE_URL", "").strip()
        local_database_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
        if not (database_url or cloud_database_url or local_database_url):
            errors.append(
                "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL or "
                "LOCAL_DATABASE_URL, or use PIPELINE_STORAGE_BACKEND=memory."
            )

    # --- Threshold ------------------------------------------------------
    threshold_raw = os.getenv("PIPELINE_AMOUNT_THRESHOLD", "").strip()
    if threshold_raw:
        try:
            threshold = Decimal(threshold_raw.replace(",", ""))
        except InvalidOperation:
            errors.append(f"PIPELINE_AMOUNT_THRESHOLD='{threshold_raw}' is not a number.")
        else:
            if threshold < 0:
                errors.append("PIPELINE_AMOUNT_THRESHOLD must be non-negative.")

    # --- Schedule -------------------------------------------------------
    timezone_raw = os.getenv("SCHEDULE_DEFAULT_TIMEZONE", "").strip().upper()
    if timezone_raw and timezone_raw not in _ALLOWED_SCHEDULE_TIMEZONES:
        errors.append(
            f"SCHEDULE_DEFAULT_TIMEZONE='{timezone_raw}' is not valid. "
            f"Allowed values: {list(_ALLOWED_SCHEDULE_TIMEZONES)}."
        )

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    If any are missing, log a critical error and abort startup so that
    the operator is forced to run migrations before serving traffic.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate storage, seed default sources, start the scheduler on boot; shut it down on exit."""
    from app.config import get_pipeline_settings
    from app.services.source_registry import get_source_registry

    log = logging.getLogger(__name__)
    settings = get_pipeline_settings()
    if settings.storage_backend == "sqlalchemy":
        _check_db()
        log.info("Database connectivity confirmed")
        _check_schema()
        log.info("Database schema validated")

    if settings.seed_default_sources:
        seeded = get_source_registry().seed_defaults()
        if seeded:
            log.info("Seeded %d default source(s)", len(seeded))

    from app.scheduler.jobs import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    log.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        log.info("Scheduler shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="LienSync API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import (
        audit_router,
        export_router,
        liens_router,
        pipeline_router,
        schedule_router,
        sources_router,
    )

    application.include_router(pipeline_router)
    application.include_router(sources_router)
    application.include_router(schedule_router)
    application.include_router(liens_router)
    application.include_router(audit_router)
    application.include_router(export_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        from app.config import get_pipeline_settings
        from app.services.pipeline_orchestrator import get_pipeline_orchestrator
        from app.services.sync_gateway import get_sync_gateway

        return HealthResponse(
            status="ok",
            storage_backend=get_pipeline_settings().storage_backend,
            sync_configured=get_sync_gateway().is_configured,
            pipeline_running=get_pipeline_orchestrator().is_running,
        )

    return application


app = create_app()
