"""
FastAPI route: alert lifecycle endpoints.

Provides endpoints to:
    POST /api/v1/alerts                  — report an alert
    POST /api/v1/alerts/{id}/respond     — volunteer a response
    POST /api/v1/alerts/{id}/resolve     — resolve / mark false alarm
    GET  /api/v1/alerts/active           — ids of ACTIVE alerts
    GET  /api/v1/alerts/count            — total alerts ever created
    GET  /api/v1/alerts/{id}             — alert snapshot
    GET  /api/v1/alerts/{id}/responders  — responder identities

Handlers are plain ``def`` so FastAPI runs them in its thread pool; the
registry lock serializes them.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from safewatch.app.api.dependencies import get_caller, registry_dependency
from safewatch.app.api.schemas import (
    AlertResponse,
    CountResponse,
    CreateAlertRequest,
    CreatedResponse,
    IdListResponse,
    ResolveAlertRequest,
)
from safewatch.app.registry.service import Registry

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=201,
    summary="Report an alert",
    description="Requires a registered caller with reputation of at least 50.",
)
def create_alert(
    request: CreateAlertRequest,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    alert_id = registry.create_alert(
        caller,
        request.alert_type,
        request.location,
        request.description,
        request.latitude,
        request.longitude,
        request.radius,
    )
    return CreatedResponse(id=alert_id)


@router.get("/active", response_model=IdListResponse, summary="List active alert ids")
def active_alerts(registry: Registry = Depends(registry_dependency)):
    ids = registry.get_active_alerts()
    return IdListResponse(ids=ids, count=len(ids))


@router.get("/count", response_model=CountResponse, summary="Total alerts created")
def total_alerts(registry: Registry = Depends(registry_dependency)):
    return CountResponse(total=registry.get_total_alerts())


@router.get("/{alert_id}", response_model=AlertResponse, summary="Get an alert")
def get_alert(alert_id: int, registry: Registry = Depends(registry_dependency)):
    return AlertResponse(**registry.get_alert(alert_id).to_dict())


@router.get(
    "/{alert_id}/responders",
    response_model=List[str],
    summary="List responders in response order",
)
def get_responders(alert_id: int, registry: Registry = Depends(registry_dependency)):
    return registry.get_alert_responders(alert_id)


@router.post(
    "/{alert_id}/respond",
    response_model=AlertResponse,
    summary="Respond to an active alert",
)
def respond(
    alert_id: int,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    alert = registry.respond_to_alert(caller, alert_id)
    return AlertResponse(**alert.to_dict())


@router.post(
    "/{alert_id}/resolve",
    response_model=AlertResponse,
    summary="Resolve an alert or mark it a false alarm",
    description=(
        "Allowed for the reporter, first responders, emergency services "
        "and the registry owner."
    ),
)
def resolve(
    alert_id: int,
    request: ResolveAlertRequest,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    alert = registry.resolve_alert(caller, alert_id, request.new_status)
    return AlertResponse(**alert.to_dict())
