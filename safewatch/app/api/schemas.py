"""
Pydantic schemas for the registry API.

Separated from the route handlers so they are reusable across
the codebase (routers, tests, client scripts).

Field-level constraints here only catch malformed JSON (wrong types,
missing fields). Domain rules such as "radius between 1 and 5000" or
"description not empty" are enforced by the registry itself so that the
same rules apply to every caller, HTTP or not.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from safewatch.app.registry.models import AlertStatus, AlertType, to_fixed_point

_COORDINATE_HELP = "Fixed-point degrees × 10^6"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterUserRequest(BaseModel):
    contact_info: str = Field(
        ..., description="Opaque contact string, stored as given",
        examples=["+919876543210"],
    )


class FirstResponderRequest(BaseModel):
    is_first_responder: bool = Field(..., examples=[True])


class EmergencyServiceRequest(BaseModel):
    identity: str = Field(..., examples=["chennai-fire-dept"])


class CreateAlertRequest(BaseModel):
    """
    Report a new incident.

    Coordinates are fixed-point integers (degrees × 10^6).
    """
    alert_type: AlertType = Field(..., examples=["EMERGENCY"])
    location: str = Field(..., examples=["Anna Salai, near Gemini flyover"])
    description: str = Field(..., examples=["Two-car collision, one injured"])
    latitude: int = Field(
        ..., description=_COORDINATE_HELP, examples=[to_fixed_point(13.0827)],
    )
    longitude: int = Field(
        ..., description=_COORDINATE_HELP, examples=[to_fixed_point(80.2707)],
    )
    radius: int = Field(..., description="Meters, 1–5000", examples=[500])


class ResolveAlertRequest(BaseModel):
    new_status: AlertStatus = Field(
        ..., description="RESOLVED or FALSE_ALARM", examples=["RESOLVED"],
    )


class CreateNeighborhoodRequest(BaseModel):
    name: str = Field(..., examples=["T. Nagar"])
    center_latitude: int = Field(
        ..., description=_COORDINATE_HELP, examples=[to_fixed_point(13.0418)],
    )
    center_longitude: int = Field(
        ..., description=_COORDINATE_HELP, examples=[to_fixed_point(80.2339)],
    )
    radius: int = Field(..., description="Meters, > 0", examples=[1500])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class AlertResponse(BaseModel):
    alert_id: int
    reporter: str
    alert_type: AlertType
    status: AlertStatus
    location: str
    description: str
    timestamp: int
    latitude: int
    longitude: int
    radius: int
    responders: List[str]
    is_verified: bool


class UserProfileResponse(BaseModel):
    identity: str
    is_registered: bool
    is_verified: bool
    is_first_responder: bool
    reputation_score: int
    alerts_reported: int
    alerts_responded: int
    contact_info: str
    registered_at: int


class NeighborhoodResponse(BaseModel):
    neighborhood_id: int
    name: str
    center_latitude: int
    center_longitude: int
    radius: int
    residents: List[str]
    moderator: str
    is_active: bool
    created_at: int


class CreatedResponse(BaseModel):
    id: int


class IdListResponse(BaseModel):
    ids: List[int]
    count: int


class CountResponse(BaseModel):
    total: int


class EventResponse(BaseModel):
    sequence: int
    name: str
    payload: Dict[str, Any]
    emitted_at: str


class EventFeedResponse(BaseModel):
    events: List[EventResponse]
    last_sequence: int
