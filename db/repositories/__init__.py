"""
Repository layer exports.
"""

from db.repositories.audit_repository import AuditEntryRepository
from db.repositories.lien_repository import LienRepository
from db.repositories.pipeline_run_repository import PipelineRunRepository
from db.repositories.source_repository import LienSourceRepository

__all__ = [
    "AuditEntryRepository",
    "LienRepository",
    "LienSourceRepository",
    "PipelineRunRepository",
]
