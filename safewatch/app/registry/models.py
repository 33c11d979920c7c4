"""
models.py — Records owned by the registry.

Defines:
    • AlertType    — incident categories
    • AlertStatus  — alert lifecycle states
    • Alert        — a location-tagged incident report
    • User         — a registered resident and their reputation
    • Neighborhood — a named area with a resident list

═══════════════════════════════════════════════════════════════════════════
ALERT LIFECYCLE
═══════════════════════════════════════════════════════════════════════════

    ACTIVE ──► RESOLVED       (reporter +10 reputation)
       │
       └─────► FALSE_ALARM    (reporter −25 reputation, floored at 0)

Both outcomes are terminal. No transition ever leaves RESOLVED or
FALSE_ALARM, and nothing returns an alert to ACTIVE.

═══════════════════════════════════════════════════════════════════════════
COORDINATES
═══════════════════════════════════════════════════════════════════════════

Latitude / longitude are fixed-point integers (degrees × 10^6), e.g.
Chennai Central 13.0827°N → 13082700. They are stored as given and never
range-checked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


COORDINATE_SCALE = 1_000_000


def to_fixed_point(degrees: float) -> int:
    """Degrees to the stored integer form, rounded to the nearest unit."""
    return int(round(degrees * COORDINATE_SCALE))


def to_degrees(value: int) -> float:
    return value / COORDINATE_SCALE


# ═══════════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════════

class AlertType(str, Enum):
    """Incident categories a resident can report."""
    EMERGENCY      = "EMERGENCY"
    SUSPICIOUS     = "SUSPICIOUS"
    WEATHER        = "WEATHER"
    MISSING_PERSON = "MISSING_PERSON"
    TRAFFIC        = "TRAFFIC"
    UTILITY        = "UTILITY"


class AlertStatus(str, Enum):
    """Alert lifecycle — ACTIVE moves once to a terminal state."""
    ACTIVE      = "ACTIVE"
    RESOLVED    = "RESOLVED"
    FALSE_ALARM = "FALSE_ALARM"

    @property
    def is_terminal(self) -> bool:
        return self is not AlertStatus.ACTIVE


# ═══════════════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Alert:
    """
    A location-tagged incident report.

    Attributes
    ----------
    alert_id : int
        Sequential id, assigned by the registry (first alert is 1).
    reporter : str
        Identity of the user who created the alert.
    alert_type : AlertType
    status : AlertStatus
    location, description : str
        Free-form, non-empty.
    timestamp : int
        Unix seconds at creation.
    latitude, longitude : int
        Fixed-point coordinates (degrees × 10^6).
    radius : int
        Affected radius in meters, 1–5000.
    responders : list of str
        Identities that responded, in response order, without repeats.
    is_verified : bool
    """
    alert_id: int
    reporter: str
    alert_type: AlertType
    location: str
    description: str
    timestamp: int
    latitude: int
    longitude: int
    radius: int
    status: AlertStatus = AlertStatus.ACTIVE
    responders: List[str] = field(default_factory=list)
    is_verified: bool = False

    def has_responder(self, identity: str) -> bool:
        for responder in self.responders:
            if responder == identity:
                return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "reporter": self.reporter,
            "alert_type": self.alert_type.value,
            "status": self.status.value,
            "location": self.location,
            "description": self.description,
            "timestamp": self.timestamp,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius,
            "responders": list(self.responders),
            "is_verified": self.is_verified,
        }


@dataclass
class User:
    """A registered resident. Keyed by identity in the registry."""
    identity: str
    contact_info: str
    registered_at: int
    reputation_score: int
    is_registered: bool = True
    is_verified: bool = False
    is_first_responder: bool = False
    alerts_reported: int = 0
    alerts_responded: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "is_registered": self.is_registered,
            "is_verified": self.is_verified,
            "is_first_responder": self.is_first_responder,
            "reputation_score": self.reputation_score,
            "alerts_reported": self.alerts_reported,
            "alerts_responded": self.alerts_responded,
            "contact_info": self.contact_info,
            "registered_at": self.registered_at,
        }


@dataclass
class Neighborhood:
    """A named area. The creator is its moderator and first resident."""
    neighborhood_id: int
    name: str
    center_latitude: int
    center_longitude: int
    radius: int
    moderator: str
    created_at: int
    residents: List[str] = field(default_factory=list)
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "neighborhood_id": self.neighborhood_id,
            "name": self.name,
            "center_latitude": self.center_latitude,
            "center_longitude": self.center_longitude,
            "radius": self.radius,
            "residents": list(self.residents),
            "moderator": self.moderator,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }
