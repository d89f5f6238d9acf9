"""
app/services package marker.
"""

from app.services.audit_log import AuditLog, get_audit_log
from app.services.export_service import ExportResult, ExportService, get_export_service
from app.services.pipeline_orchestrator import (
    FastAPIBackgroundTaskExecutor,
    PipelineOrchestrator,
    PipelineStatus,
    get_pipeline_orchestrator,
)
from app.services.schedule_service import ScheduleConfig, ScheduleService, get_schedule_service
from app.services.source_registry import SourceRegistry, get_source_registry
from app.services.sync_gateway import RetryOutcome, SyncGateway, get_sync_gateway

__all__ = [
    "AuditLog",
    "get_audit_log",
    "ExportResult",
    "ExportService",
    "get_export_service",
    "FastAPIBackgroundTaskExecutor",
    "PipelineOrchestrator",
    "PipelineStatus",
    "get_pipeline_orchestrator",
    "RetryOutcome",
    "ScheduleConfig",
    "ScheduleService",
    "get_schedule_service",
    "SourceRegistry",
    "get_source_registry",
    "SyncGateway",
    "get_sync_gateway",
]
