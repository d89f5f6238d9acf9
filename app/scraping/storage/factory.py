"""
Process-wide store selection based on the configured storage backend.
"""

from __future__ import annotations

from functools import lru_cache

from app.config import get_pipeline_settings
from app.scraping.storage.base import RecordStore, SourceStore
from app.scraping.storage.memory_storage import InMemoryRecordStore, InMemorySourceStore
from app.scraping.storage.sqlalchemy_storage import SQLAlchemyRecordStore, SQLAlchemySourceStore

MEMORY_BACKEND = "memory"


@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    """
    Build and cache the record store for the configured backend.
    """

    if get_pipeline_settings().storage_backend == MEMORY_BACKEND:
        return InMemoryRecordStore()
    return SQLAlchemyRecordStore()


@lru_cache(maxsize=1)
def get_source_store() -> SourceStore:
    if get_pipeline_settings().storage_backend == MEMORY_BACKEND:
        return InMemorySourceStore()
    return SQLAlchemySourceStore()
