"""
app/schemas package marker.
"""

from app.schemas.audit import AuditEntryResponse, AuditListResponse
from app.schemas.health import HealthResponse
from app.schemas.liens import (
    DashboardStatsResponse,
    LienEnrichmentRequest,
    LienListResponse,
    LienResponse,
    LienRetryResponse,
)
from app.schemas.pipeline import (
    PipelineRunDetailResponse,
    PipelineRunListResponse,
    PipelineRunResponse,
    PipelineStatusResponse,
    PipelineStopResponse,
    PipelineTriggerRequest,
    SourceRunResponse,
)
from app.schemas.schedule import ScheduleResponse, ScheduleUpdateRequest
from app.schemas.sources import SourceCreateRequest, SourceResponse, SourceUpdateRequest

__all__ = [
    "AuditEntryResponse",
    "AuditListResponse",
    "DashboardStatsResponse",
    "HealthResponse",
    "LienEnrichmentRequest",
    "LienListResponse",
    "LienResponse",
    "LienRetryResponse",
    "PipelineRunDetailResponse",
    "PipelineRunListResponse",
    "PipelineRunResponse",
    "PipelineStatusResponse",
    "PipelineStopResponse",
    "PipelineTriggerRequest",
    "ScheduleResponse",
    "ScheduleUpdateRequest",
    "SourceCreateRequest",
    "SourceResponse",
    "SourceUpdateRequest",
    "SourceRunResponse",
]
