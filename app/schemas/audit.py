"""
app/schemas/audit.py

Response schemas for the audit trail.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class AuditEntryResponse(BaseModel):
    id: UUID
    level: str
    message: str
    component: str
    timestamp: datetime
    metadata: dict[str, Any] | None = None


class AuditListResponse(BaseModel):
    entries: list[AuditEntryResponse] = Field(default_factory=list)
