"""
app/api/routers/sources.py

Recorder source registration and activation endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.domain.errors import SourceConfigurationError, SourceNotFoundError
from app.scraping.config import descriptor_to_payload
from app.scraping.config.models import SourceConfig
from app.schemas.sources import SourceCreateRequest, SourceResponse, SourceUpdateRequest
from app.services.source_registry import SourceRegistry, get_source_registry

router = APIRouter(tags=["sources"])


@router.get("/sources", response_model=list[SourceResponse])
def list_sources(
    registry: SourceRegistry = Depends(get_source_registry),
) -> list[SourceResponse]:
    return [_to_source_response(source) for source in registry.list_all()]


@router.get("/sources/{source_id}", response_model=SourceResponse)
def get_source(
    source_id: UUID,
    registry: SourceRegistry = Depends(get_source_registry),
) -> SourceResponse:
    try:
        source = registry.get(source_id)
    except SourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_source_response(source)


@router.post("/sources", status_code=status.HTTP_201_CREATED, response_model=SourceResponse)
def create_source(
    request: SourceCreateRequest,
    registry: SourceRegistry = Depends(get_source_registry),
) -> SourceResponse:
    try:
        source = registry.create(
            name=request.name,
            jurisdiction=request.jurisdiction,
            descriptor=request.descriptor,
            active=request.active,
        )
    except SourceConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.problems) from exc
    return _to_source_response(source)


@router.patch("/sources/{source_id}", response_model=SourceResponse)
def update_source(
    source_id: UUID,
    request: SourceUpdateRequest,
    registry: SourceRegistry = Depends(get_source_registry),
) -> SourceResponse:
    """
    Update a source's identity, descriptor, or active flag.
    """

    try:
        source = registry.update(
            source_id,
            name=request.name,
            jurisdiction=request.jurisdiction,
            descriptor=request.descriptor,
            active=request.active,
        )
    except SourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SourceConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.problems) from exc
    return _to_source_response(source)


def _to_source_response(source: SourceConfig) -> SourceResponse:
    return SourceResponse(
        id=source.id,
        name=source.name,
        jurisdiction=source.jurisdiction,
        active=source.active,
        strategy=source.descriptor.strategy,
        descriptor=descriptor_to_payload(source.descriptor),
        created_at=source.created_at,
        updated_at=source.updated_at,
    )
