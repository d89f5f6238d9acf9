"""
app/services/audit_log.py

Operator-facing audit trail backed by the record store.

Every entry is also emitted as a structured log line, so the process log
still carries the event when the store write fails.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from app.domain.liens import AuditEntry, AuditLevel
from app.scraping.logging_utils import log_event
from app.scraping.storage import RecordStore, get_record_store

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    AuditLevel.INFO: logging.INFO,
    AuditLevel.SUCCESS: logging.INFO,
    AuditLevel.WARNING: logging.WARNING,
    AuditLevel.ERROR: logging.ERROR,
}


class AuditLog:
    def __init__(self, *, store: RecordStore) -> None:
        self._store = store

    def record(
        self,
        level: str,
        message: str,
        *,
        component: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEntry | None:
        try:
            log_event(
                logger,
                _LOG_LEVELS.get(level, logging.INFO),
                "audit_entry",
                audit_level=level,
                component=component,
                message=message,
                metadata=metadata,
            )
            return self._store.append_audit(
                level=level,
                message=message,
                component=component,
                metadata=metadata,
            )
        except Exception:
            logger.exception("Failed to persist audit entry component=%s level=%s", component, level)
            return None

    def info(self, message: str, *, component: str, metadata: dict[str, Any] | None = None) -> AuditEntry | None:
        return self.record(AuditLevel.INFO, message, component=component, metadata=metadata)

    def warning(self, message: str, *, component: str, metadata: dict[str, Any] | None = None) -> AuditEntry | None:
        return self.record(AuditLevel.WARNING, message, component=component, metadata=metadata)

    def error(self, message: str, *, component: str, metadata: dict[str, Any] | None = None) -> AuditEntry | None:
        return self.record(AuditLevel.ERROR, message, component=component, metadata=metadata)

    def success(self, message: str, *, component: str, metadata: dict[str, Any] | None = None) -> AuditEntry | None:
        return self.record(AuditLevel.SUCCESS, message, component=component, metadata=metadata)

    def recent(self, *, limit: int = 100, level: str | None = None) -> list[AuditEntry]:
        return self._store.recent_audit(limit=limit, level=level)


@lru_cache(maxsize=1)
def get_audit_log() -> AuditLog:
    return AuditLog(store=get_record_store())
