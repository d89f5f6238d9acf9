"""
app/schemas/health.py

Liveness response schema.
"""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    storage_backend: str
    sync_configured: bool
    pipeline_running: bool
