"""
db/models/lien.py

Discovered lien records and their sync lifecycle.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Lien(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "liens"

    recording_number: Mapped[str] = mapped_column(String(64), nullable=False)
    record_date: Mapped[date] = mapped_column(Date, nullable=False)
    debtor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    debtor_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    creditor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    creditor_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    document_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("lien_sources.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="pending",
        comment="pending, processing, synced, mailer_sent, completed",
    )
    external_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Record id assigned by the external record service",
    )
    enrichment_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        UniqueConstraint("recording_number", name="uq_liens_recording_number"),
        Index("ix_liens_status", "status"),
        Index("ix_liens_record_date", "record_date"),
        Index("ix_liens_created_at", "created_at"),
        Index("ix_liens_status_amount", "status", "amount"),
    )
