"""
Storage layer exports.
"""

from app.scraping.storage.base import RecordStore, SourceStore
from app.scraping.storage.factory import get_record_store, get_source_store
from app.scraping.storage.memory_storage import InMemoryRecordStore, InMemorySourceStore
from app.scraping.storage.sqlalchemy_storage import SQLAlchemyRecordStore, SQLAlchemySourceStore

__all__ = [
    "InMemoryRecordStore",
    "InMemorySourceStore",
    "RecordStore",
    "SQLAlchemyRecordStore",
    "SQLAlchemySourceStore",
    "SourceStore",
    "get_record_store",
    "get_source_store",
]
