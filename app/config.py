"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_STORAGE_BACKENDS = {"sqlalchemy", "memory"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_decimal_env(name: str, default: Decimal) -> Decimal:
    """
    Read a decimal amount from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return Decimal(raw_value.strip().replace(",", ""))
    except InvalidOperation:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(*names: str) -> str | None:
    """
    Return the first non-empty value among the given environment variables.
    """

    _load_env_once()
    for name in names:
        value = os.getenv(name)
        if value is None:
            continue
        stripped = value.strip()
        if stripped:
            return stripped
    return None


@dataclass(frozen=True)
class PipelineSettings:
    """
    Runtime settings for discovery runs.
    """

    amount_threshold: Decimal = Decimal("20000")
    max_pages: int = 25
    http_timeout_seconds: float = 30.0
    render_timeout_ms: int = 30000
    ocr_timeout_seconds: float = 60.0
    min_text_length: int = 100
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    user_agent: str = "LienSyncBot/1.0"
    headless: bool = True
    seed_default_sources: bool = True
    storage_backend: str = "sqlalchemy"


@dataclass(frozen=True)
class SyncSettings:
    """
    External record service (Airtable) connector settings.
    """

    api_key: str | None = None
    base_id: str | None = None
    table_name: str = "All Medical Liens"
    api_url: str = "https://api.airtable.com/v0"
    batch_size: int = 10
    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_id)


@dataclass(frozen=True)
class ScheduleDefaults:
    hour: int = 6
    minute: int = 0
    timezone: str = "PT"


@lru_cache(maxsize=1)
def get_pipeline_settings() -> PipelineSettings:
    """
    Return cached pipeline settings from environment variables.
    """

    storage_backend = _get_str_env("PIPELINE_STORAGE_BACKEND", "sqlalchemy").lower()
    if storage_backend not in _ALLOWED_STORAGE_BACKENDS:
        raise RuntimeError(
            f"PIPELINE_STORAGE_BACKEND '{storage_backend}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_STORAGE_BACKENDS)}."
        )

    return PipelineSettings(
        amount_threshold=max(Decimal("0"), _get_decimal_env("PIPELINE_AMOUNT_THRESHOLD", Decimal("20000"))),
        max_pages=max(1, _get_int_env("PIPELINE_MAX_PAGES", 25)),
        http_timeout_seconds=max(1.0, _get_float_env("PIPELINE_HTTP_TIMEOUT_SECONDS", 30.0)),
        render_timeout_ms=max(1000, _get_int_env("PIPELINE_RENDER_TIMEOUT_MS", 30000)),
        ocr_timeout_seconds=max(1.0, _get_float_env("PIPELINE_OCR_TIMEOUT_SECONDS", 60.0)),
        min_text_length=max(0, _get_int_env("PIPELINE_MIN_TEXT_LENGTH", 100)),
        max_retries=max(0, _get_int_env("PIPELINE_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("PIPELINE_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("PIPELINE_BACKOFF_MULTIPLIER", 2.0)),
        user_agent=_get_str_env("PIPELINE_USER_AGENT", "LienSyncBot/1.0"),
        headless=_get_bool_env("PIPELINE_HEADLESS", True),
        seed_default_sources=_get_bool_env("PIPELINE_SEED_DEFAULT_SOURCES", True),
        storage_backend=storage_backend,
    )


@lru_cache(maxsize=1)
def get_sync_settings() -> SyncSettings:
    """
    Return Airtable connector settings from environment variables.
    """

    return SyncSettings(
        api_key=_get_optional_str_env("AIRTABLE_API_KEY", "AIRTABLE_TOKEN"),
        base_id=_get_optional_str_env("AIRTABLE_BASE_ID"),
        table_name=_get_str_env("AIRTABLE_TABLE_NAME", "All Medical Liens"),
        api_url=_get_str_env("AIRTABLE_API_URL", "https://api.airtable.com/v0").rstrip("/"),
        # The service accepts at most 10 records per write request.
        batch_size=min(10, max(1, _get_int_env("AIRTABLE_BATCH_SIZE", 10))),
        timeout_seconds=max(1.0, _get_float_env("AIRTABLE_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("AIRTABLE_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("AIRTABLE_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("AIRTABLE_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("AIRTABLE_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_schedule_defaults() -> ScheduleDefaults:
    return ScheduleDefaults(
        hour=min(23, max(0, _get_int_env("SCHEDULE_DEFAULT_HOUR", 6))),
        minute=min(59, max(0, _get_int_env("SCHEDULE_DEFAULT_MINUTE", 0))),
        timezone=_get_str_env("SCHEDULE_DEFAULT_TIMEZONE", "PT").upper(),
    )
