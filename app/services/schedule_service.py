"""
app/services/schedule_service.py

Daily run schedule held in process memory.

The schedule is expressed as an hour and minute in one of the supported
US time zones. Updating it reschedules the live APScheduler job when one
is attached.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import ScheduleDefaults, get_schedule_defaults
from app.domain.errors import ScheduleValidationError

logger = logging.getLogger(__name__)

TIMEZONE_ALIASES: dict[str, str] = {
    "PT": "America/Los_Angeles",
    "CT": "America/Chicago",
    "ET": "America/New_York",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ScheduleConfig:
    hour: int
    minute: int
    timezone: str
    updated_at: datetime

    @property
    def iana_timezone(self) -> str:
        return TIMEZONE_ALIASES[self.timezone]

    @property
    def cron_expression(self) -> str:
        return f"{self.minute} {self.hour} * * *"


def validate_schedule(*, hour: int, minute: int, timezone_name: str) -> list[str]:
    problems: list[str] = []
    if not 0 <= hour <= 23:
        problems.append("hour must be between 0 and 23")
    if not 0 <= minute <= 59:
        problems.append("minute must be between 0 and 59")
    if timezone_name not in TIMEZONE_ALIASES:
        problems.append(
            f"timezone '{timezone_name}' is not supported. "
            f"Allowed values: {', '.join(TIMEZONE_ALIASES)}"
        )
    return problems


class ScheduleService:
    def __init__(
        self,
        *,
        defaults: ScheduleDefaults,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._scheduler: BaseScheduler | None = None
        self._job_id: str | None = None
        self._config = self._build(hour=defaults.hour, minute=defaults.minute, timezone_name=defaults.timezone)

    def get(self) -> ScheduleConfig:
        with self._lock:
            return self._config

    def update(self, *, hour: int, minute: int, timezone_name: str) -> ScheduleConfig:
        """
        Replace the schedule and reschedule the attached job.

        Raises ScheduleValidationError listing every invalid value.
        """

        config = self._build(hour=hour, minute=minute, timezone_name=timezone_name)
        with self._lock:
            self._config = config
            scheduler, job_id = self._scheduler, self._job_id
        if scheduler is not None and job_id is not None:
            scheduler.reschedule_job(job_id, trigger=self.cron_trigger(config))
        logger.info(
            "Schedule updated cron=%s timezone=%s",
            config.cron_expression,
            config.iana_timezone,
        )
        return config

    def attach(self, scheduler: BaseScheduler, *, job_id: str) -> None:
        with self._lock:
            self._scheduler = scheduler
            self._job_id = job_id

    def cron_trigger(self, config: ScheduleConfig | None = None) -> CronTrigger:
        active = config or self.get()
        return CronTrigger(
            hour=active.hour,
            minute=active.minute,
            timezone=ZoneInfo(active.iana_timezone),
        )

    def next_run_time(self) -> datetime | None:
        with self._lock:
            scheduler, job_id = self._scheduler, self._job_id
        if scheduler is None or job_id is None:
            return None
        job = scheduler.get_job(job_id)
        return getattr(job, "next_run_time", None) if job is not None else None

    def _build(self, *, hour: int, minute: int, timezone_name: str) -> ScheduleConfig:
        normalized = (timezone_name or "").strip().upper()
        problems = validate_schedule(hour=hour, minute=minute, timezone_name=normalized)
        if problems:
            raise ScheduleValidationError("; ".join(problems))
        return ScheduleConfig(hour=hour, minute=minute, timezone=normalized, updated_at=self._clock())


@lru_cache(maxsize=1)
def get_schedule_service() -> ScheduleService:
    return ScheduleService(defaults=get_schedule_defaults())
