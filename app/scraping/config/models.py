"""
Source configuration models.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime


class AcquisitionStrategy:
    RENDER = "render"
    DIRECT = "direct"

    ALL = (RENDER, DIRECT)


SELECTOR_KEYS = (
    "document_type_field",
    "document_type_value",
    "start_date_field",
    "end_date_field",
    "search_button",
    "results_table",
    "record_links",
    "next_page",
)

REQUIRED_SELECTORS: dict[str, tuple[str, ...]] = {
    AcquisitionStrategy.RENDER: ("start_date_field", "end_date_field", "search_button"),
    AcquisitionStrategy.DIRECT: (),
}

PATTERN_KEYS = ("amount", "debtor", "creditor", "address", "record_date")

DEFAULT_IDENTIFIER_PATTERN = r"^\d{10,12}$"
DEFAULT_DATE_FORMAT = "%m/%d/%Y"


@dataclass(frozen=True)
class TimingConfig:
    """
    Politeness delays in milliseconds.
    """

    page_load_ms: int = 2000
    between_requests_ms: int = 1000
    document_load_ms: int = 2000


@dataclass(frozen=True)
class SourceDescriptor:
    """
    Declarative description of how to search one recorder and read its documents.
    """

    strategy: str
    search_url: str
    document_url_template: str
    base_url: str | None = None
    selectors: dict[str, str] = field(default_factory=dict)
    patterns: dict[str, str] = field(default_factory=dict)
    delays: TimingConfig = field(default_factory=TimingConfig)
    identifier_pattern: str = DEFAULT_IDENTIFIER_PATTERN
    date_format: str = DEFAULT_DATE_FORMAT
    max_pages: int | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def document_url(self, identifier: str) -> str:
        return self.document_url_template.replace("{identifier}", identifier)

    def selector(self, key: str) -> str | None:
        value = self.selectors.get(key)
        return value or None


@dataclass(frozen=True)
class SourceConfig:
    """
    One registered recorder source.
    """

    id: uuid.UUID
    name: str
    jurisdiction: str
    descriptor: SourceDescriptor
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
