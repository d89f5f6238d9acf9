"""
app/api/routers/liens.py

Lien listing, sync retry, enrichment, and dashboard endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.domain.errors import LienNotFoundError, SyncRejectedError
from app.domain.liens import Lien, LienStatus
from app.schemas.liens import (
    DashboardStatsResponse,
    LienEnrichmentRequest,
    LienListResponse,
    LienResponse,
    LienRetryResponse,
)
from app.scraping.storage import RecordStore, get_record_store
from app.services.sync_gateway import SyncGateway, get_sync_gateway

router = APIRouter(tags=["liens"])


@router.get("/liens/recent", response_model=LienListResponse)
def list_recent_liens(
    limit: int = Query(default=50, ge=1, le=500, description="Max liens returned"),
    store: RecordStore = Depends(get_record_store),
) -> LienListResponse:
    return LienListResponse(liens=[to_lien_response(lien) for lien in store.recent_liens(limit=limit)])


@router.get("/liens", response_model=LienListResponse)
def list_liens_by_status(
    status_filter: str = Query(default=LienStatus.PENDING, alias="status", description="Lien status"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max liens returned"),
    store: RecordStore = Depends(get_record_store),
) -> LienListResponse:
    normalized = status_filter.strip().lower()
    if normalized not in LienStatus.ALL:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown status '{status_filter}'. Allowed values: {', '.join(LienStatus.ALL)}.",
        )
    liens = store.liens_by_status(normalized, limit=limit)
    return LienListResponse(liens=[to_lien_response(lien) for lien in liens])


@router.post("/liens/{lien_id}/retry-sync", response_model=LienRetryResponse)
def retry_lien_sync(
    lien_id: UUID,
    gateway: SyncGateway = Depends(get_sync_gateway),
) -> LienRetryResponse:
    """
    Re-send one lien to the external record service.
    """

    try:
        outcome = gateway.retry_record(lien_id)
    except LienNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SyncRejectedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if outcome.already_synced:
        return LienRetryResponse(
            message="Lien is already synced.",
            already_synced=True,
            synced=True,
            lien=to_lien_response(outcome.lien),
        )

    summary = outcome.summary
    skipped = summary.skipped if summary is not None else False
    synced = outcome.lien.status == LienStatus.SYNCED
    if synced:
        message = "Lien synced."
    elif skipped:
        message = "Sync skipped: external record service is not configured."
    else:
        message = "Sync failed; the lien remains pending."
    return LienRetryResponse(
        message=message,
        already_synced=False,
        synced=synced,
        skipped=skipped,
        lien=to_lien_response(outcome.lien),
    )


@router.post("/liens/{lien_id}/enrichment", response_model=LienResponse)
def enrich_lien(
    lien_id: UUID,
    request: LienEnrichmentRequest,
    gateway: SyncGateway = Depends(get_sync_gateway),
) -> LienResponse:
    try:
        lien = gateway.push_enrichment(lien_id, phone=request.phone, email=request.email)
    except LienNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SyncRejectedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return to_lien_response(lien)


@router.get("/dashboard/stats", response_model=DashboardStatsResponse, tags=["dashboard"])
def get_dashboard_stats(
    store: RecordStore = Depends(get_record_store),
) -> DashboardStatsResponse:
    stats = store.dashboard_stats(now=datetime.now(timezone.utc))
    return DashboardStatsResponse(
        todays_liens=stats.todays_liens,
        synced=stats.synced,
        mailers_sent=stats.mailers_sent,
        active_leads=stats.active_leads,
    )


def to_lien_response(lien: Lien) -> LienResponse:
    return LienResponse(
        id=lien.id,
        recording_number=lien.recording_number,
        record_date=lien.record_date,
        debtor_name=lien.debtor_name,
        debtor_address=lien.debtor_address,
        amount=lien.amount,
        creditor_name=lien.creditor_name,
        creditor_address=lien.creditor_address,
        document_url=lien.document_url,
        source_id=lien.source_id,
        status=lien.status,
        external_id=lien.external_id,
        enrichment_data=lien.enrichment_data,
        created_at=lien.created_at,
        updated_at=lien.updated_at,
    )
