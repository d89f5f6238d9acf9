"""
app/schemas/sources.py

Schemas for recorder source registration and updates.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class SourceCreateRequest(BaseModel):
    """
    A new recorder source; `descriptor` is validated by the source registry.
    """

    name: str
    jurisdiction: str
    descriptor: dict[str, Any]
    active: bool = True


class SourceUpdateRequest(BaseModel):
    name: str | None = None
    jurisdiction: str | None = None
    descriptor: dict[str, Any] | None = None
    active: bool | None = None


class SourceResponse(BaseModel):
    id: UUID
    name: str
    jurisdiction: str
    active: bool
    strategy: str
    descriptor: dict[str, Any]
    created_at: datetime | None = None
    updated_at: datetime | None = None
