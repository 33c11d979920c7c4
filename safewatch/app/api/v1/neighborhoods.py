"""
FastAPI route: neighborhood endpoints.

    POST /api/v1/neighborhoods            — create (verified callers)
    GET  /api/v1/neighborhoods/count      — total created
    GET  /api/v1/neighborhoods/{id}       — snapshot
    POST /api/v1/neighborhoods/{id}/join  — join as resident
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from safewatch.app.api.dependencies import get_caller, registry_dependency
from safewatch.app.api.schemas import (
    CountResponse,
    CreatedResponse,
    CreateNeighborhoodRequest,
    NeighborhoodResponse,
)
from safewatch.app.registry.service import Registry

router = APIRouter(prefix="/api/v1/neighborhoods", tags=["neighborhoods"])


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=201,
    summary="Create a neighborhood",
)
def create_neighborhood(
    request: CreateNeighborhoodRequest,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    neighborhood_id = registry.create_neighborhood(
        caller,
        request.name,
        request.center_latitude,
        request.center_longitude,
        request.radius,
    )
    return CreatedResponse(id=neighborhood_id)


@router.get("/count", response_model=CountResponse, summary="Total neighborhoods")
def total_neighborhoods(registry: Registry = Depends(registry_dependency)):
    return CountResponse(total=registry.get_total_neighborhoods())


@router.get(
    "/{neighborhood_id}",
    response_model=NeighborhoodResponse,
    summary="Get a neighborhood",
)
def get_neighborhood(
    neighborhood_id: int,
    registry: Registry = Depends(registry_dependency),
):
    return NeighborhoodResponse(**registry.get_neighborhood(neighborhood_id).to_dict())


@router.post(
    "/{neighborhood_id}/join",
    response_model=NeighborhoodResponse,
    summary="Join a neighborhood",
)
def join(
    neighborhood_id: int,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    neighborhood = registry.join_neighborhood(caller, neighborhood_id)
    return NeighborhoodResponse(**neighborhood.to_dict())
