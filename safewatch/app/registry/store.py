"""
store.py — Keyed storage owned by a single Registry instance.

Alerts and neighborhoods are keyed by sequential integer ids, users by
identity. The store holds no logic beyond id allocation; all rules live
in the service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Set

from safewatch.app.registry.models import Alert, Neighborhood, User


@dataclass
class RegistryStore:
    owner: str
    alerts: Dict[int, Alert] = field(default_factory=dict)
    users: Dict[str, User] = field(default_factory=dict)
    neighborhoods: Dict[int, Neighborhood] = field(default_factory=dict)
    emergency_services: Set[str] = field(default_factory=set)
    alert_counter: int = 0
    neighborhood_counter: int = 0

    def next_alert_id(self) -> int:
        self.alert_counter += 1
        return self.alert_counter

    def next_neighborhood_id(self) -> int:
        self.neighborhood_counter += 1
        return self.neighborhood_counter
