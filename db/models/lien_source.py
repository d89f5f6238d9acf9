"""
db/models/lien_source.py

Registered recorder sources and their acquisition descriptors.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class LienSource(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "lien_sources"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    jurisdiction: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="State or jurisdiction code, e.g. AZ",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    descriptor: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        comment="Acquisition strategy, selectors, patterns, and delays",
    )

    __table_args__ = (
        Index("ix_lien_sources_is_active", "is_active"),
    )
