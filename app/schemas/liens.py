"""
app/schemas/liens.py

Response schemas for lien listings, sync retries, enrichment, and dashboard stats.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class LienResponse(BaseModel):
    id: UUID
    recording_number: str
    record_date: date
    debtor_name: str
    debtor_address: str | None = None
    amount: Decimal
    creditor_name: str | None = None
    creditor_address: str | None = None
    document_url: str | None = None
    source_id: UUID | None = None
    status: str
    external_id: str | None = None
    enrichment_data: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class LienListResponse(BaseModel):
    liens: list[LienResponse] = Field(default_factory=list)


class LienRetryResponse(BaseModel):
    message: str
    already_synced: bool
    synced: bool
    skipped: bool = False
    lien: LienResponse


class LienEnrichmentRequest(BaseModel):
    phone: str | None = None
    email: str | None = None


class DashboardStatsResponse(BaseModel):
    todays_liens: int = Field(..., ge=0)
    synced: int = Field(..., ge=0)
    mailers_sent: int = Field(..., ge=0)
    active_leads: int = Field(..., ge=0)
