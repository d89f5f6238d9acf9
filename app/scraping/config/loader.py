"""
Descriptor parsing, validation, and built-in source loading.
"""

from __future__ import annotations

import json
import re
import uuid
from collections.abc import Mapping
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

from app.domain.errors import SourceConfigurationError
from app.scraping.config.models import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_IDENTIFIER_PATTERN,
    PATTERN_KEYS,
    REQUIRED_SELECTORS,
    SELECTOR_KEYS,
    AcquisitionStrategy,
    SourceConfig,
    SourceDescriptor,
    TimingConfig,
)

DEFAULT_SOURCES_PATH = Path(__file__).resolve().parent / "sources.json"

_DELAY_FIELDS = {
    "page_load": "page_load_ms",
    "between_requests": "between_requests_ms",
    "document_load": "document_load_ms",
}


def build_source_descriptor(raw: object) -> SourceDescriptor:
    """
    Parse and validate a raw descriptor payload.

    Raises SourceConfigurationError listing every problem found.
    """

    if not isinstance(raw, Mapping):
        raise SourceConfigurationError(["descriptor must be a JSON object"])

    problems: list[str] = []
    descriptor = SourceDescriptor(
        strategy=str(raw.get("strategy", "")).strip().lower(),
        search_url=_optional_str(raw.get("search_url")) or "",
        document_url_template=_optional_str(raw.get("document_url_template")) or "",
        base_url=_optional_str(raw.get("base_url")),
        selectors=_normalize_mapping(raw.get("selectors"), label="selectors", problems=problems),
        patterns=_normalize_mapping(raw.get("patterns"), label="patterns", problems=problems),
        delays=_parse_delays(raw.get("delays"), problems=problems),
        identifier_pattern=_optional_str(raw.get("identifier_pattern")) or DEFAULT_IDENTIFIER_PATTERN,
        date_format=_optional_str(raw.get("date_format")) or DEFAULT_DATE_FORMAT,
        max_pages=_optional_int(raw.get("max_pages"), label="max_pages", problems=problems),
        headers=_normalize_mapping(raw.get("headers"), label="headers", problems=problems),
    )
    problems.extend(validate_source_descriptor(descriptor))
    if problems:
        raise SourceConfigurationError(problems)
    return descriptor


def validate_source_descriptor(descriptor: SourceDescriptor) -> list[str]:
    """
    Return human-readable problems for a descriptor; empty when valid.
    """

    problems: list[str] = []

    if descriptor.strategy not in AcquisitionStrategy.ALL:
        problems.append(
            f"strategy '{descriptor.strategy}' is not supported. "
            f"Allowed values: {', '.join(AcquisitionStrategy.ALL)}"
        )

    if not _is_http_url(descriptor.search_url):
        problems.append("search_url must be an absolute http(s) URL")
    if not _is_http_url(descriptor.document_url_template):
        problems.append("document_url_template must be an absolute http(s) URL")
    elif "{identifier}" not in descriptor.document_url_template:
        problems.append("document_url_template must contain the {identifier} placeholder")
    if descriptor.base_url is not None and not _is_http_url(descriptor.base_url):
        problems.append("base_url must be an absolute http(s) URL")

    for key in descriptor.selectors:
        if key not in SELECTOR_KEYS:
            problems.append(f"unknown selector '{key}'")
    for key in REQUIRED_SELECTORS.get(descriptor.strategy, ()):
        if not descriptor.selectors.get(key):
            problems.append(f"selector '{key}' is required for strategy '{descriptor.strategy}'")

    for key, pattern in descriptor.patterns.items():
        if key not in PATTERN_KEYS:
            problems.append(f"unknown pattern '{key}'")
            continue
        problems.extend(_compile_problems(f"pattern '{key}'", pattern))
    problems.extend(_compile_problems("identifier_pattern", descriptor.identifier_pattern))

    for name, value in asdict(descriptor.delays).items():
        if value < 0:
            problems.append(f"delay '{name}' must be non-negative")

    if "%" not in descriptor.date_format:
        problems.append("date_format must be a strftime format string")
    else:
        try:
            date(2000, 1, 31).strftime(descriptor.date_format)
        except ValueError as exc:
            problems.append(f"date_format is invalid: {exc}")

    if descriptor.max_pages is not None and descriptor.max_pages < 1:
        problems.append("max_pages must be at least 1")

    return problems


def descriptor_to_payload(descriptor: SourceDescriptor) -> dict[str, Any]:
    """
    Serialize a descriptor into its JSON storage shape.
    """

    return {
        "strategy": descriptor.strategy,
        "search_url": descriptor.search_url,
        "document_url_template": descriptor.document_url_template,
        "base_url": descriptor.base_url,
        "selectors": dict(descriptor.selectors),
        "patterns": dict(descriptor.patterns),
        "delays": {
            "page_load": descriptor.delays.page_load_ms,
            "between_requests": descriptor.delays.between_requests_ms,
            "document_load": descriptor.delays.document_load_ms,
        },
        "identifier_pattern": descriptor.identifier_pattern,
        "date_format": descriptor.date_format,
        "max_pages": descriptor.max_pages,
        "headers": dict(descriptor.headers),
    }


def load_source_configs(*, config_path: str | Path = DEFAULT_SOURCES_PATH) -> list[SourceConfig]:
    """
    Load built-in source configurations from a JSON file.
    """

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Source config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    sources = raw_data.get("sources", [])
    if not isinstance(sources, list):
        raise ValueError("Invalid source config: 'sources' must be a list.")

    parsed: list[SourceConfig] = []
    for entry in sources:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("name", "")).strip()
        if not name:
            continue
        parsed.append(
            SourceConfig(
                id=uuid.uuid4(),
                name=name,
                jurisdiction=str(entry.get("jurisdiction", "")).strip().upper(),
                descriptor=build_source_descriptor(entry.get("descriptor")),
                active=_optional_bool(entry.get("active"), True),
            )
        )
    return parsed


def _parse_delays(raw: object, *, problems: list[str]) -> TimingConfig:
    if raw is None:
        return TimingConfig()
    if not isinstance(raw, Mapping):
        problems.append("delays must be an object")
        return TimingConfig()

    values: dict[str, int] = {}
    for key, value in raw.items():
        field_name = _DELAY_FIELDS.get(str(key).strip().lower())
        if field_name is None:
            problems.append(f"unknown delay '{key}'")
            continue
        parsed = _optional_int(value, label=f"delay '{key}'", problems=problems)
        if parsed is not None:
            values[field_name] = parsed
    return TimingConfig(**values)


def _normalize_mapping(raw: object, *, label: str, problems: list[str]) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        problems.append(f"{label} must be an object")
        return {}

    normalized: dict[str, str] = {}
    for key, value in raw.items():
        if not isinstance(key, str) or not key.strip():
            continue
        if not isinstance(value, str) or not value.strip():
            problems.append(f"{label} entry '{key}' must be a non-empty string")
            continue
        normalized[key.strip().lower()] = value.strip()
    return normalized


def _compile_problems(label: str, pattern: str) -> list[str]:
    try:
        re.compile(pattern)
    except re.error as exc:
        return [f"{label} is not a valid regular expression: {exc}"]
    return []


def _is_http_url(value: str | None) -> bool:
    return bool(value and value.startswith(("http://", "https://")))


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_int(value: object, *, label: str, problems: list[str]) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        problems.append(f"{label} must be an integer")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        problems.append(f"{label} must be an integer")
        return None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
