"""
app/services/source_registry.py

Registry of recorder sources: validation, activation, and default seeding.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

from app.domain.errors import SourceConfigurationError, SourceNotFoundError
from app.scraping.config import (
    DEFAULT_SOURCES_PATH,
    build_source_descriptor,
    load_source_configs,
    validate_source_descriptor,
)
from app.scraping.config.models import SourceConfig, SourceDescriptor
from app.scraping.storage import SourceStore, get_source_store

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255
MAX_JURISDICTION_LENGTH = 64


class SourceRegistry:
    """
    Validates and persists source configurations.
    """

    def __init__(
        self,
        *,
        store: SourceStore,
        seed_path: str | Path = DEFAULT_SOURCES_PATH,
    ) -> None:
        self._store = store
        self._seed_path = seed_path

    def list_active(self) -> list[SourceConfig]:
        return self._store.list_sources(active_only=True)

    def list_all(self) -> list[SourceConfig]:
        return self._store.list_sources()

    def find(self, source_id: uuid.UUID) -> SourceConfig | None:
        return self._store.get_source(source_id)

    def get(self, source_id: uuid.UUID) -> SourceConfig:
        source = self._store.get_source(source_id)
        if source is None:
            raise SourceNotFoundError(f"Source not found: {source_id}")
        return source

    def create(
        self,
        *,
        name: str,
        jurisdiction: str,
        descriptor: Mapping[str, object] | SourceDescriptor,
        active: bool = True,
    ) -> SourceConfig:
        """
        Validate and register a new source.

        Raises SourceConfigurationError with every problem found, including
        the name and jurisdiction checks.
        """

        problems = _identity_problems(name=name, jurisdiction=jurisdiction)
        parsed = _parse_descriptor(descriptor, problems=problems)
        if problems or parsed is None:
            raise SourceConfigurationError(problems)

        source = self._store.add_source(
            name=name.strip(),
            jurisdiction=jurisdiction.strip().upper(),
            descriptor=parsed,
            active=active,
        )
        logger.info(
            "Source registered id=%s name=%s strategy=%s",
            source.id,
            source.name,
            parsed.strategy,
        )
        return source

    def update(
        self,
        source_id: uuid.UUID,
        *,
        name: str | None = None,
        jurisdiction: str | None = None,
        descriptor: Mapping[str, object] | SourceDescriptor | None = None,
        active: bool | None = None,
    ) -> SourceConfig:
        current = self.get(source_id)

        problems = _identity_problems(
            name=current.name if name is None else name,
            jurisdiction=current.jurisdiction if jurisdiction is None else jurisdiction,
        )
        parsed: SourceDescriptor | None = None
        if descriptor is not None:
            parsed = _parse_descriptor(descriptor, problems=problems)
        if problems:
            raise SourceConfigurationError(problems)

        updated = self._store.update_source(
            source_id,
            name=name.strip() if name is not None else None,
            jurisdiction=jurisdiction.strip().upper() if jurisdiction is not None else None,
            descriptor=parsed,
            active=active,
        )
        if updated is None:
            raise SourceNotFoundError(f"Source not found: {source_id}")
        return updated

    def set_active(self, source_id: uuid.UUID, active: bool) -> SourceConfig:
        return self.update(source_id, active=active)

    def seed_defaults(self) -> list[SourceConfig]:
        """
        Register the bundled sources when the store holds none.
        """

        if self._store.list_sources():
            return []

        seeded: list[SourceConfig] = []
        for config in load_source_configs(config_path=self._seed_path):
            seeded.append(
                self._store.add_source(
                    name=config.name,
                    jurisdiction=config.jurisdiction,
                    descriptor=config.descriptor,
                    active=config.active,
                )
            )
        logger.info("Seeded default sources count=%s", len(seeded))
        return seeded


def _identity_problems(*, name: str, jurisdiction: str) -> list[str]:
    problems: list[str] = []
    if not name or not name.strip():
        problems.append("name is required")
    elif len(name.strip()) > MAX_NAME_LENGTH:
        problems.append(f"name must be at most {MAX_NAME_LENGTH} characters")
    if not jurisdiction or not jurisdiction.strip():
        problems.append("jurisdiction is required")
    elif len(jurisdiction.strip()) > MAX_JURISDICTION_LENGTH:
        problems.append(f"jurisdiction must be at most {MAX_JURISDICTION_LENGTH} characters")
    return problems


def _parse_descriptor(
    descriptor: Mapping[str, object] | SourceDescriptor,
    *,
    problems: list[str],
) -> SourceDescriptor | None:
    if isinstance(descriptor, SourceDescriptor):
        descriptor_problems = validate_source_descriptor(descriptor)
        problems.extend(descriptor_problems)
        return None if descriptor_problems else descriptor
    try:
        return build_source_descriptor(descriptor)
    except SourceConfigurationError as exc:
        problems.extend(exc.problems)
        return None


@lru_cache(maxsize=1)
def get_source_registry() -> SourceRegistry:
    return SourceRegistry(store=get_source_store())
