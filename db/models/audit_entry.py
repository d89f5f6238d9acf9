"""
db/models/audit_entry.py

Append-only operational audit log.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UUIDPrimaryKeyMixin


class AuditEntry(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "audit_entries"

    level: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="info, warning, error, success",
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    component: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONB, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_audit_entries_timestamp", "timestamp"),
        Index("ix_audit_entries_level", "level"),
    )
