"""
app/api/routers/pipeline.py

Pipeline trigger, stop, status, and run history endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query, status

from app.domain.errors import PipelineAlreadyRunningError
from app.domain.liens import DateRange, PipelineRun, RunType, SourceRun
from app.schemas.pipeline import (
    PipelineRunDetailResponse,
    PipelineRunListResponse,
    PipelineRunResponse,
    PipelineStatusResponse,
    PipelineStopResponse,
    PipelineTriggerRequest,
    SourceRunResponse,
)
from app.services.pipeline_orchestrator import (
    FastAPIBackgroundTaskExecutor,
    PipelineOrchestrator,
    get_pipeline_orchestrator,
)

router = APIRouter(tags=["pipeline"])


@router.post(
    "/pipeline/trigger",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=PipelineRunResponse,
)
def trigger_pipeline(
    background_tasks: BackgroundTasks,
    request: PipelineTriggerRequest | None = Body(default=None),
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> PipelineRunResponse:
    """
    Start a manual run; the run body executes after the response is sent.
    """

    payload = request or PipelineTriggerRequest()
    try:
        date_range = DateRange.resolve(date_from=payload.from_date, date_to=payload.to_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        run = orchestrator.trigger(
            run_type=RunType.MANUAL,
            date_range=date_range,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
        )
    except PipelineAlreadyRunningError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return to_run_response(run)


@router.post(
    "/pipeline/stop",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=PipelineStopResponse,
)
def stop_pipeline(
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> PipelineStopResponse:
    requested = orchestrator.request_stop()
    message = "Stop requested for the active run." if requested else "No pipeline run is active."
    return PipelineStopResponse(message=message, stop_requested=requested)


@router.get("/pipeline/status", response_model=PipelineStatusResponse)
def get_pipeline_status(
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> PipelineStatusResponse:
    current = orchestrator.status()
    return PipelineStatusResponse(
        is_running=current.is_running,
        status=current.status,
        latest_run=to_run_response(current.latest_run) if current.latest_run is not None else None,
    )


@router.get("/pipeline/runs", response_model=PipelineRunListResponse)
def list_pipeline_runs(
    limit: int = Query(default=20, ge=1, le=200, description="Max runs returned"),
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> PipelineRunListResponse:
    return PipelineRunListResponse(runs=[to_run_response(run) for run in orchestrator.recent_runs(limit=limit)])


@router.get("/pipeline/runs/{run_id}", response_model=PipelineRunDetailResponse)
def get_pipeline_run(
    run_id: UUID,
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> PipelineRunDetailResponse:
    found = orchestrator.get_run(run_id)
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pipeline run not found: {run_id}",
        )
    run, source_runs = found
    return PipelineRunDetailResponse(
        run=to_run_response(run),
        source_runs=[_to_source_run_response(item) for item in source_runs],
    )


def to_run_response(run: PipelineRun) -> PipelineRunResponse:
    return PipelineRunResponse(
        run_id=run.id,
        run_type=run.run_type,
        status=run.status,
        started_at=run.started_at,
        ended_at=run.ended_at,
        records_found=run.records_found,
        records_accepted=run.records_accepted,
        records_over_threshold=run.records_over_threshold,
        error_message=run.error_message,
        metadata=run.metadata,
    )


def _to_source_run_response(source_run: SourceRun) -> SourceRunResponse:
    return SourceRunResponse(
        source_run_id=source_run.id,
        source_id=source_run.source_id,
        source_name=source_run.source_name,
        status=source_run.status,
        started_at=source_run.started_at,
        ended_at=source_run.ended_at,
        records_found=source_run.records_found,
        records_accepted=source_run.records_accepted,
        records_over_threshold=source_run.records_over_threshold,
        error_message=source_run.error_message,
    )
