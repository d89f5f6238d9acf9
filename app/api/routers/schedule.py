"""
app/api/routers/schedule.py

Daily run schedule endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.domain.errors import ScheduleValidationError
from app.schemas.schedule import ScheduleResponse, ScheduleUpdateRequest
from app.services.schedule_service import ScheduleConfig, ScheduleService, get_schedule_service

router = APIRouter(tags=["schedule"])


@router.get("/schedule", response_model=ScheduleResponse)
def get_schedule(
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    return _to_schedule_response(schedule_service.get(), schedule_service)


@router.post("/schedule", response_model=ScheduleResponse)
def update_schedule(
    request: ScheduleUpdateRequest,
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    try:
        config = schedule_service.update(
            hour=request.hour,
            minute=request.minute,
            timezone_name=request.timezone,
        )
    except ScheduleValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_schedule_response(config, schedule_service)


def _to_schedule_response(config: ScheduleConfig, schedule_service: ScheduleService) -> ScheduleResponse:
    return ScheduleResponse(
        hour=config.hour,
        minute=config.minute,
        timezone=config.timezone,
        iana_timezone=config.iana_timezone,
        cron_expression=config.cron_expression,
        updated_at=config.updated_at,
        next_run_time=schedule_service.next_run_time(),
    )
