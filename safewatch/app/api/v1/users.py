"""
FastAPI route: user and role management.

    POST /api/v1/users/register                         — register caller
    POST /api/v1/users/emergency-services               — owner: add service
    GET  /api/v1/users/emergency-services/{identity}    — is it a service?
    POST /api/v1/users/{identity}/verify                — owner: verify user
    PUT  /api/v1/users/{identity}/first-responder       — owner: set flag
    GET  /api/v1/users/{identity}                       — profile snapshot
    GET  /api/v1/users/{identity}/alerts                — alerts reported
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from safewatch.app.api.dependencies import get_caller, registry_dependency
from safewatch.app.api.schemas import (
    EmergencyServiceRequest,
    FirstResponderRequest,
    IdListResponse,
    RegisterUserRequest,
    UserProfileResponse,
)
from safewatch.app.registry.models import User
from safewatch.app.registry.service import Registry

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def _profile(user: User) -> UserProfileResponse:
    return UserProfileResponse(**user.to_dict())


@router.post(
    "/register",
    response_model=UserProfileResponse,
    status_code=201,
    summary="Register the calling identity",
)
def register(
    request: RegisterUserRequest,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    return _profile(registry.register_user(caller, request.contact_info))


@router.post("/emergency-services", summary="Authorize an emergency service")
def add_emergency_service(
    request: EmergencyServiceRequest,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    registry.add_emergency_service(caller, request.identity)
    return {"identity": request.identity, "is_emergency_service": True}


@router.get(
    "/emergency-services/{identity}",
    summary="Check emergency-service status",
)
def emergency_service_status(
    identity: str,
    registry: Registry = Depends(registry_dependency),
):
    return {
        "identity": identity,
        "is_emergency_service": registry.is_emergency_service(identity),
    }


@router.post(
    "/{identity}/verify",
    response_model=UserProfileResponse,
    summary="Verify a registered user",
)
def verify(
    identity: str,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    return _profile(registry.verify_user(caller, identity))


@router.put(
    "/{identity}/first-responder",
    response_model=UserProfileResponse,
    summary="Grant or revoke first-responder status",
)
def set_first_responder(
    identity: str,
    request: FirstResponderRequest,
    caller: str = Depends(get_caller),
    registry: Registry = Depends(registry_dependency),
):
    return _profile(
        registry.set_first_responder(caller, identity, request.is_first_responder)
    )


@router.get("/{identity}", response_model=UserProfileResponse, summary="Get a profile")
def get_profile(identity: str, registry: Registry = Depends(registry_dependency)):
    return _profile(registry.get_user_profile(identity))


@router.get(
    "/{identity}/alerts",
    response_model=IdListResponse,
    summary="Alerts reported by a user",
)
def user_alerts(identity: str, registry: Registry = Depends(registry_dependency)):
    ids = registry.get_user_alerts(identity)
    return IdListResponse(ids=ids, count=len(ids))
