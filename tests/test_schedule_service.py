"""
tests/test_schedule_service.py

ScheduleService validation and APScheduler rescheduling.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from app.config import ScheduleDefaults
from app.domain.errors import ScheduleValidationError
from app.scheduler.jobs import PIPELINE_JOB_ID, build_scheduler
from app.services.schedule_service import ScheduleService, validate_schedule

FIXED_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def service() -> ScheduleService:
    return ScheduleService(defaults=ScheduleDefaults(), clock=lambda: FIXED_NOW)


def _noop() -> None:
    return None


class TestScheduleConfig:
    def test_defaults(self, service: ScheduleService) -> None:
        config = service.get()
        assert (config.hour, config.minute, config.timezone) == (6, 0, "PT")
        assert config.iana_timezone == "America/Los_Angeles"
        assert config.cron_expression == "0 6 * * *"
        assert config.updated_at == FIXED_NOW

    def test_update_normalizes_timezone(self, service: ScheduleService) -> None:
        config = service.update(hour=7, minute=30, timezone_name=" et ")
        assert config.timezone == "ET"
        assert config.iana_timezone == "America/New_York"
        assert config.cron_expression == "30 7 * * *"
        assert service.get() == config

    def test_invalid_update_lists_every_problem(self, service: ScheduleService) -> None:
        with pytest.raises(ScheduleValidationError) as exc_info:
            service.update(hour=24, minute=60, timezone_name="MT")

        message = str(exc_info.value)
        assert "hour must be between 0 and 23" in message
        assert "minute must be between 0 and 59" in message
        assert "timezone 'MT' is not supported" in message
        assert service.get().hour == 6

    def test_validate_schedule_accepts_bounds(self) -> None:
        assert validate_schedule(hour=0, minute=0, timezone_name="CT") == []
        assert validate_schedule(hour=23, minute=59, timezone_name="PT") == []


class TestSchedulerWiring:
    def test_job_registered_with_configured_trigger(self, service: ScheduleService) -> None:
        scheduler = build_scheduler(schedule_service=service, job=_noop)

        job = scheduler.get_job(PIPELINE_JOB_ID)

        assert job is not None
        assert str(job.trigger.timezone) == "America/Los_Angeles"
        assert "hour='6'" in str(job.trigger)

    def test_update_reschedules_attached_job(self, service: ScheduleService) -> None:
        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(_noop, trigger=service.cron_trigger(), id=PIPELINE_JOB_ID)
        service.attach(scheduler, job_id=PIPELINE_JOB_ID)
        scheduler.start(paused=True)
        try:
            service.update(hour=9, minute=15, timezone_name="CT")

            job = scheduler.get_job(PIPELINE_JOB_ID)
            assert str(job.trigger.timezone) == "America/Chicago"
            assert "hour='9'" in str(job.trigger)
            assert "minute='15'" in str(job.trigger)
            assert service.next_run_time() is not None
        finally:
            scheduler.shutdown(wait=False)

    def test_next_run_time_without_scheduler(self, service: ScheduleService) -> None:
        assert service.next_run_time() is None
