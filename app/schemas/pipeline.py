"""
app/schemas/pipeline.py

Request and response schemas for pipeline trigger, stop, and status endpoints.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class PipelineTriggerRequest(BaseModel):
    from_date: date | None = None
    to_date: date | None = None


class PipelineRunResponse(BaseModel):
    run_id: UUID
    run_type: str
    status: str
    started_at: datetime
    ended_at: datetime | None = None
    records_found: int = Field(..., ge=0)
    records_accepted: int = Field(..., ge=0)
    records_over_threshold: int = Field(..., ge=0)
    error_message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SourceRunResponse(BaseModel):
    source_run_id: UUID
    source_id: UUID | None = None
    source_name: str
    status: str
    started_at: datetime
    ended_at: datetime | None = None
    records_found: int = Field(..., ge=0)
    records_accepted: int = Field(..., ge=0)
    records_over_threshold: int = Field(..., ge=0)
    error_message: str | None = None


class PipelineRunDetailResponse(BaseModel):
    run: PipelineRunResponse
    source_runs: list[SourceRunResponse] = Field(default_factory=list)


class PipelineRunListResponse(BaseModel):
    runs: list[PipelineRunResponse] = Field(default_factory=list)


class PipelineStatusResponse(BaseModel):
    is_running: bool
    status: str
    latest_run: PipelineRunResponse | None = None


class PipelineStopResponse(BaseModel):
    message: str
    stop_requested: bool
