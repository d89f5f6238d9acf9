"""
app/domain package marker.
"""

from app.domain.liens import (
    AuditEntry,
    AuditLevel,
    DashboardStats,
    DateRange,
    Lien,
    LienInput,
    LienStatus,
    PipelineRun,
    RawDocument,
    RunStatus,
    RunType,
    SourceRun,
    SourceRunSummary,
    SyncSummary,
)

__all__ = [
    "AuditEntry",
    "AuditLevel",
    "DashboardStats",
    "DateRange",
    "Lien",
    "LienInput",
    "LienStatus",
    "PipelineRun",
    "RawDocument",
    "RunStatus",
    "RunType",
    "SourceRun",
    "SourceRunSummary",
    "SyncSummary",
]
