"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.audit_entry import AuditEntry
from db.models.lien import Lien
from db.models.lien_source import LienSource
from db.models.pipeline_run import PipelineRun, SourceRun

__all__ = [
    "AuditEntry",
    "Lien",
    "LienSource",
    "PipelineRun",
    "SourceRun",
]
