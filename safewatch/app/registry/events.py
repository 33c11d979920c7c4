"""
events.py — Append-only notification log.

Every successful registry mutation that external consumers care about
appends one RegistryEvent. Consumers either poll the log by sequence
number (``since``) or subscribe a callback that is invoked synchronously
after the event is appended.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventName(str, Enum):
    ALERT_CREATED        = "AlertCreated"
    ALERT_RESPONDED      = "AlertResponded"
    ALERT_RESOLVED       = "AlertResolved"
    USER_REGISTERED      = "UserRegistered"
    USER_VERIFIED        = "UserVerified"
    NEIGHBORHOOD_CREATED = "NeighborhoodCreated"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RegistryEvent:
    """One emitted notification. ``sequence`` starts at 1."""
    sequence: int
    name: EventName
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "name": self.name.value,
            "payload": dict(self.payload),
            "emitted_at": self.emitted_at.isoformat(),
        }


Subscriber = Callable[[RegistryEvent], None]


class EventLog:
    """Ordered, append-only event store with synchronous subscribers."""

    def __init__(self) -> None:
        self._events: List[RegistryEvent] = []
        self._subscribers: List[Subscriber] = []

    def __len__(self) -> int:
        return len(self._events)

    def emit(self, name: EventName, /, **payload: Any) -> RegistryEvent:
        event = RegistryEvent(
            sequence=len(self._events) + 1,
            name=name,
            payload=payload,
        )
        self._events.append(event)
        logger.info(
            "Event #%d %s %s", event.sequence, name.value, payload,
            extra={"event": name.value},
        )
        # The mutation is already committed; a failing subscriber must not
        # surface as a failed operation or starve the subscribers after it.
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on event #%d %s",
                    subscriber, event.sequence, name.value,
                    extra={"event": name.value},
                )
        return event

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def since(self, sequence: int = 0, limit: Optional[int] = None) -> List[RegistryEvent]:
        """Events with a sequence number strictly greater than ``sequence``."""
        start = max(sequence, 0)
        events = self._events[start:]
        if limit is not None:
            events = events[:limit]
        return list(events)

    def all(self) -> List[RegistryEvent]:
        return list(self._events)
