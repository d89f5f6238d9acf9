"""
app/api/routers/audit.py

Audit trail endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.domain.liens import AuditLevel
from app.schemas.audit import AuditEntryResponse, AuditListResponse
from app.services.audit_log import AuditLog, get_audit_log

router = APIRouter(tags=["audit"])


@router.get("/audit", response_model=AuditListResponse)
def list_audit_entries(
    limit: int = Query(default=100, ge=1, le=1000, description="Max entries returned"),
    level: str | None = Query(default=None, description="Optional level filter"),
    audit: AuditLog = Depends(get_audit_log),
) -> AuditListResponse:
    normalized = level.strip().lower() if level else None
    if normalized is not None and normalized not in AuditLevel.ALL:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown level '{level}'. Allowed values: {', '.join(AuditLevel.ALL)}.",
        )
    entries = audit.recent(limit=limit, level=normalized)
    return AuditListResponse(
        entries=[
            AuditEntryResponse(
                id=entry.id,
                level=entry.level,
                message=entry.message,
                component=entry.component,
                timestamp=entry.timestamp,
                metadata=entry.metadata,
            )
            for entry in entries
        ]
    )
