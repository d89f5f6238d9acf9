"""
app/schemas/schedule.py

Schemas for reading and updating the daily run schedule.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ScheduleUpdateRequest(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    timezone: str = Field(..., min_length=1, description='One of "PT", "CT", "ET".')


class ScheduleResponse(BaseModel):
    hour: int
    minute: int
    timezone: str
    iana_timezone: str
    cron_expression: str
    updated_at: datetime
    next_run_time: datetime | None = None
