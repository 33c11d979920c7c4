"""
service.py — The Registry: sole owner of alerts, users and neighborhoods.

═══════════════════════════════════════════════════════════════════════════
OPERATION SHAPE
═══════════════════════════════════════════════════════════════════════════

Every public method takes the caller identity first and runs in three
phases under the registry lock:

    1. Authorize   — capability predicates (permissions.py)
    2. Validate    — inputs, existence, current state
    3. Commit      — mutate records, then emit the notification

Phases 1 and 2 only read. Any RegistryError raised there leaves the
store exactly as it was, so a failed call never commits partial state.

═══════════════════════════════════════════════════════════════════════════
REPUTATION
═══════════════════════════════════════════════════════════════════════════

    Event                         Who               Change
    ─────                         ───               ──────
    register_user                 caller            starts at 50
    verify_user                   verified user     +25
    respond_to_alert              responder         +10
    resolve_alert(RESOLVED)       reporter          +10
    resolve_alert(FALSE_ALARM)    reporter          −25, floored at 0

create_alert requires reputation ≥ 50.

═══════════════════════════════════════════════════════════════════════════
SERIALIZATION
═══════════════════════════════════════════════════════════════════════════

One re-entrant lock guards the whole store. Each operation holds it from
the first check to the last mutation, which gives the same "one call at a
time" guarantee a ledger-style execution environment provides. Queries
take the lock too so they never see a half-applied mutation.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional

from safewatch.app.core.config import settings
from safewatch.app.core.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from safewatch.app.registry import permissions
from safewatch.app.registry.events import EventLog, EventName, RegistryEvent
from safewatch.app.registry.models import (
    Alert,
    AlertStatus,
    AlertType,
    Neighborhood,
    User,
)
from safewatch.app.registry.store import RegistryStore

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Reputation Policy
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReputationPolicy:
    """Reputation thresholds and adjustments."""
    min_reputation: int = 50
    response_reward: int = 10
    resolution_reward: int = 10
    false_alarm_penalty: int = 25
    verification_bonus: int = 25
    max_alert_radius: int = 5000


DEFAULT_POLICY = ReputationPolicy()


def _unix_now() -> int:
    return int(time.time())


def _is_blank(value: str) -> bool:
    return value is None or len(value) == 0


# ═══════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════

class Registry:
    """
    Community safety-alert registry.

    Parameters
    ----------
    owner : str
        Identity with owner privileges (verification, first-responder
        flags, emergency services, alert resolution).
    policy : ReputationPolicy
    clock : callable
        Returns the current time as unix seconds.
    store : RegistryStore, optional
        Pre-populated store; a fresh one is created when omitted.
    """

    def __init__(
        self,
        owner: str,
        *,
        policy: ReputationPolicy = DEFAULT_POLICY,
        clock: Callable[[], int] = _unix_now,
        store: Optional[RegistryStore] = None,
    ):
        self.store = store if store is not None else RegistryStore(owner=owner)
        self.policy = policy
        self.events = EventLog()
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def owner(self) -> str:
        return self.store.owner

    # ── internal lookups (lock already held) ──

    def _require_registered(self, caller: str, action: str) -> User:
        if not permissions.is_registered(self.store, caller):
            raise AuthorizationError(
                f"Caller must be registered to {action}", caller=caller,
            )
        return self.store.users[caller]

    def _require_owner(self, caller: str, action: str) -> None:
        if not permissions.is_owner(self.store, caller):
            raise AuthorizationError(
                f"Only the registry owner may {action}", caller=caller,
            )

    def _get_alert(self, alert_id: int) -> Alert:
        alert = self.store.alerts.get(alert_id)
        if alert is None:
            raise NotFoundError("Alert", alert_id=alert_id)
        return alert

    def _get_user(self, identity: str) -> User:
        user = self.store.users.get(identity)
        if user is None or not user.is_registered:
            raise NotFoundError("User", identity=identity)
        return user

    def _get_neighborhood(self, neighborhood_id: int) -> Neighborhood:
        neighborhood = self.store.neighborhoods.get(neighborhood_id)
        if neighborhood is None:
            raise NotFoundError("Neighborhood", neighborhood_id=neighborhood_id)
        return neighborhood

    # ═══════════════════════════════════════════════════════════════════
    # Alert lifecycle
    # ═══════════════════════════════════════════════════════════════════

    def create_alert(
        self,
        caller: str,
        alert_type: AlertType,
        location: str,
        description: str,
        latitude: int,
        longitude: int,
        radius: int,
    ) -> int:
        """Report a new ACTIVE alert and return its id."""
        with self._lock:
            user = self._require_registered(caller, "create alerts")
            if not permissions.has_min_reputation(
                self.store, caller, self.policy.min_reputation
            ):
                raise AuthorizationError(
                    f"Reputation of at least {self.policy.min_reputation} "
                    f"required to create alerts",
                    caller=caller,
                    reputation_score=user.reputation_score,
                )

            try:
                alert_type = AlertType(alert_type)
            except ValueError:
                raise ValidationError(
                    f"Unknown alert type '{alert_type}'", field="alert_type",
                ) from None
            if _is_blank(location):
                raise ValidationError("Location cannot be empty", field="location")
            if _is_blank(description):
                raise ValidationError("Description cannot be empty", field="description")
            if radius < 1 or radius > self.policy.max_alert_radius:
                raise ValidationError(
                    f"Radius must be between 1 and {self.policy.max_alert_radius} meters",
                    field="radius", value=radius,
                )

            verified = user.is_verified
            if alert_type is AlertType.EMERGENCY and user.is_first_responder:
                verified = True

            alert = Alert(
                alert_id=self.store.next_alert_id(),
                reporter=caller,
                alert_type=alert_type,
                location=location,
                description=description,
                timestamp=self._clock(),
                latitude=latitude,
                longitude=longitude,
                radius=radius,
                is_verified=verified,
            )
            self.store.alerts[alert.alert_id] = alert
            user.alerts_reported += 1

            logger.info(
                "Alert %d [%s] created by %s at %s",
                alert.alert_id, alert_type.value, caller, location,
                extra={"alert_id": alert.alert_id, "identity": caller},
            )
            self.events.emit(
                EventName.ALERT_CREATED,
                alert_id=alert.alert_id,
                reporter=caller,
                alert_type=alert_type.value,
                location=location,
            )
            return alert.alert_id

    def respond_to_alert(self, caller: str, alert_id: int) -> Alert:
        """Volunteer a response to an ACTIVE alert (+10 reputation)."""
        with self._lock:
            user = self._require_registered(caller, "respond to alerts")
            alert = self._get_alert(alert_id)
            if alert.status is not AlertStatus.ACTIVE:
                raise InvalidStateError(
                    "Alert is not active",
                    alert_id=alert_id, status=alert.status.value,
                )
            if alert.has_responder(caller):
                raise ConflictError(
                    "Caller already responded to this alert",
                    alert_id=alert_id, identity=caller,
                )

            alert.responders.append(caller)
            user.alerts_responded += 1
            user.reputation_score += self.policy.response_reward

            logger.info(
                "%s responded to alert %d (%d responders)",
                caller, alert_id, len(alert.responders),
                extra={"alert_id": alert_id, "identity": caller},
            )
            self.events.emit(
                EventName.ALERT_RESPONDED,
                alert_id=alert_id,
                responder=caller,
            )
            return copy.deepcopy(alert)

    def resolve_alert(
        self,
        caller: str,
        alert_id: int,
        new_status: AlertStatus,
    ) -> Alert:
        """Move an ACTIVE alert to RESOLVED or FALSE_ALARM."""
        with self._lock:
            alert = self._get_alert(alert_id)
            try:
                new_status = AlertStatus(new_status)
            except ValueError:
                raise ValidationError(
                    f"Unknown alert status '{new_status}'", field="new_status",
                ) from None
            if not new_status.is_terminal:
                raise ValidationError(
                    "New status must be RESOLVED or FALSE_ALARM",
                    field="new_status", value=new_status.value,
                )
            if alert.status is not AlertStatus.ACTIVE:
                raise InvalidStateError(
                    "Alert is not active",
                    alert_id=alert_id, status=alert.status.value,
                )
            if not permissions.can_resolve(self.store, caller, alert):
                raise AuthorizationError(
                    "Not authorized to resolve this alert",
                    caller=caller, alert_id=alert_id,
                )

            alert.status = new_status
            reporter = self.store.users.get(alert.reporter)
            if reporter is not None:
                if new_status is AlertStatus.FALSE_ALARM:
                    reporter.reputation_score = max(
                        0, reporter.reputation_score - self.policy.false_alarm_penalty
                    )
                else:
                    reporter.reputation_score += self.policy.resolution_reward

            logger.info(
                "Alert %d marked %s by %s",
                alert_id, new_status.value, caller,
                extra={"alert_id": alert_id, "identity": caller},
            )
            self.events.emit(
                EventName.ALERT_RESOLVED,
                alert_id=alert_id,
                resolver=caller,
                status=new_status.value,
            )
            return copy.deepcopy(alert)

    # ═══════════════════════════════════════════════════════════════════
    # User management
    # ═══════════════════════════════════════════════════════════════════

    def register_user(self, caller: str, contact_info: str) -> User:
        with self._lock:
            if permissions.is_registered(self.store, caller):
                raise ConflictError("User already registered", identity=caller)
            if _is_blank(contact_info):
                raise ValidationError(
                    "Contact info cannot be empty", field="contact_info",
                )

            now = self._clock()
            user = User(
                identity=caller,
                contact_info=contact_info,
                registered_at=now,
                reputation_score=self.policy.min_reputation,
            )
            self.store.users[caller] = user

            logger.info("User %s registered", caller, extra={"identity": caller})
            self.events.emit(
                EventName.USER_REGISTERED, user=caller, timestamp=now,
            )
            return copy.deepcopy(user)

    def verify_user(self, caller: str, user: str) -> User:
        """Owner-only: mark a user verified (+25 reputation)."""
        with self._lock:
            self._require_owner(caller, "verify users")
            record = self._get_user(user)
            if record.is_verified:
                raise ConflictError("User already verified", identity=user)

            record.is_verified = True
            record.reputation_score += self.policy.verification_bonus

            logger.info("User %s verified", user, extra={"identity": user})
            self.events.emit(EventName.USER_VERIFIED, user=user)
            return copy.deepcopy(record)

    def set_first_responder(self, caller: str, user: str, flag: bool) -> User:
        """Owner-only: grant or revoke first-responder status."""
        with self._lock:
            self._require_owner(caller, "set first responders")
            record = self._get_user(user)
            if not record.is_verified:
                raise InvalidStateError(
                    "User must be verified to be a first responder",
                    identity=user,
                )

            record.is_first_responder = bool(flag)
            logger.info(
                "User %s first-responder=%s", user, record.is_first_responder,
                extra={"identity": user},
            )
            return copy.deepcopy(record)

    def add_emergency_service(self, caller: str, identity: str) -> None:
        """Owner-only: authorize an identity to resolve alerts."""
        with self._lock:
            self._require_owner(caller, "add emergency services")
            self.store.emergency_services.add(identity)
            logger.info(
                "Emergency service %s added", identity,
                extra={"identity": identity},
            )

    # ═══════════════════════════════════════════════════════════════════
    # Neighborhood management
    # ═══════════════════════════════════════════════════════════════════

    def create_neighborhood(
        self,
        caller: str,
        name: str,
        center_latitude: int,
        center_longitude: int,
        radius: int,
    ) -> int:
        with self._lock:
            self._require_registered(caller, "create neighborhoods")
            if not permissions.is_verified(self.store, caller):
                raise AuthorizationError(
                    "Caller must be verified to create neighborhoods",
                    caller=caller,
                )
            if _is_blank(name):
                raise ValidationError("Name cannot be empty", field="name")
            if radius <= 0:
                raise ValidationError(
                    "Radius must be positive", field="radius", value=radius,
                )

            neighborhood = Neighborhood(
                neighborhood_id=self.store.next_neighborhood_id(),
                name=name,
                center_latitude=center_latitude,
                center_longitude=center_longitude,
                radius=radius,
                moderator=caller,
                created_at=self._clock(),
                residents=[caller],
            )
            self.store.neighborhoods[neighborhood.neighborhood_id] = neighborhood

            logger.info(
                "Neighborhood %d '%s' created by %s",
                neighborhood.neighborhood_id, name, caller,
                extra={
                    "neighborhood_id": neighborhood.neighborhood_id,
                    "identity": caller,
                },
            )
            self.events.emit(
                EventName.NEIGHBORHOOD_CREATED,
                neighborhood_id=neighborhood.neighborhood_id,
                name=name,
                moderator=caller,
            )
            return neighborhood.neighborhood_id

    def join_neighborhood(self, caller: str, neighborhood_id: int) -> Neighborhood:
        """Append the caller to the residents. Re-joining repeats the entry."""
        with self._lock:
            self._require_registered(caller, "join neighborhoods")
            neighborhood = self._get_neighborhood(neighborhood_id)
            if not neighborhood.is_active:
                raise InvalidStateError(
                    "Neighborhood is not active",
                    neighborhood_id=neighborhood_id,
                )

            neighborhood.residents.append(caller)
            logger.info(
                "%s joined neighborhood %d", caller, neighborhood_id,
                extra={"neighborhood_id": neighborhood_id, "identity": caller},
            )
            return copy.deepcopy(neighborhood)

    # ═══════════════════════════════════════════════════════════════════
    # Queries — snapshot copies, no side effects
    # ═══════════════════════════════════════════════════════════════════

    def get_alert(self, alert_id: int) -> Alert:
        with self._lock:
            return copy.deepcopy(self._get_alert(alert_id))

    def get_user_profile(self, identity: str) -> User:
        with self._lock:
            return copy.deepcopy(self._get_user(identity))

    def get_neighborhood(self, neighborhood_id: int) -> Neighborhood:
        with self._lock:
            return copy.deepcopy(self._get_neighborhood(neighborhood_id))

    def get_alert_responders(self, alert_id: int) -> List[str]:
        with self._lock:
            return list(self._get_alert(alert_id).responders)

    def get_total_alerts(self) -> int:
        with self._lock:
            return self.store.alert_counter

    def get_total_neighborhoods(self) -> int:
        with self._lock:
            return self.store.neighborhood_counter

    def get_active_alerts(self) -> List[int]:
        """Ids of every ACTIVE alert, ascending."""
        with self._lock:
            total = self.store.alert_counter
            count = 0
            for alert_id in range(1, total + 1):
                if self.store.alerts[alert_id].status is AlertStatus.ACTIVE:
                    count += 1

            active: List[int] = [0] * count
            index = 0
            for alert_id in range(1, total + 1):
                if self.store.alerts[alert_id].status is AlertStatus.ACTIVE:
                    active[index] = alert_id
                    index += 1
            return active

    def get_user_alerts(self, identity: str) -> List[int]:
        """Ids of alerts reported by ``identity``, ascending."""
        with self._lock:
            self._get_user(identity)
            return [
                alert_id
                for alert_id in sorted(self.store.alerts)
                if self.store.alerts[alert_id].reporter == identity
            ]

    def is_emergency_service(self, identity: str) -> bool:
        with self._lock:
            return permissions.is_emergency_service(self.store, identity)

    def get_events(self, since: int = 0, limit: Optional[int] = None) -> List[RegistryEvent]:
        """Notifications with sequence greater than ``since``, oldest first."""
        with self._lock:
            return self.events.since(since, limit=limit)


# ═══════════════════════════════════════════════════════════════════════════
# Application-wide instance
# ═══════════════════════════════════════════════════════════════════════════

@lru_cache()
def get_registry() -> Registry:
    """Process-wide registry, owned by ``settings.REGISTRY_OWNER``."""
    logger.info("Creating registry owned by %s", settings.REGISTRY_OWNER)
    return Registry(owner=settings.REGISTRY_OWNER)
