"""
test_permissions_and_events.py — Capability predicates, the event log and
record serialization.

Run with:
    pytest tests/test_permissions_and_events.py -v
"""

from __future__ import annotations

import logging

import pytest

from safewatch.app.registry import permissions
from safewatch.app.registry.events import EventLog, EventName
from safewatch.app.registry.models import (
    Alert,
    AlertStatus,
    AlertType,
    Neighborhood,
    User,
    to_degrees,
    to_fixed_point,
)
from safewatch.app.registry.permissions import Capability
from safewatch.app.registry.store import RegistryStore


def _make_user(identity: str, **kwargs) -> User:
    defaults = dict(contact_info="c", registered_at=0, reputation_score=50)
    defaults.update(kwargs)
    return User(identity=identity, **defaults)


def _make_alert(reporter: str = "alice", **kwargs) -> Alert:
    defaults = dict(
        alert_id=1,
        reporter=reporter,
        alert_type=AlertType.TRAFFIC,
        location="Kathipara junction",
        description="Signal failure",
        timestamp=0,
        latitude=13007000,
        longitude=80205000,
        radius=300,
    )
    defaults.update(kwargs)
    return Alert(**defaults)


@pytest.fixture
def store() -> RegistryStore:
    s = RegistryStore(owner="owner")
    s.users["alice"] = _make_user("alice")
    s.users["vera"] = _make_user("vera", is_verified=True, reputation_score=75)
    s.users["fred"] = _make_user("fred", is_verified=True, is_first_responder=True)
    s.emergency_services.add("fire-dept")
    return s


# ═══════════════════════════════════════════════════════════════════════════
# Permissions
# ═══════════════════════════════════════════════════════════════════════════

class TestCapabilities:

    def test_owner_not_implicitly_registered(self, store):
        assert permissions.capabilities(store, "owner") == frozenset({Capability.OWNER})

    def test_plain_user(self, store):
        assert permissions.capabilities(store, "alice") == frozenset({Capability.REGISTERED})

    def test_first_responder(self, store):
        caps = permissions.capabilities(store, "fred")
        assert caps == frozenset({
            Capability.REGISTERED,
            Capability.VERIFIED,
            Capability.FIRST_RESPONDER,
        })

    def test_emergency_service_needs_no_registration(self, store):
        caps = permissions.capabilities(store, "fire-dept")
        assert caps == frozenset({Capability.EMERGENCY_SERVICE})

    def test_unknown_identity_has_nothing(self, store):
        assert permissions.capabilities(store, "mallory") == frozenset()

    def test_min_reputation(self, store):
        assert permissions.has_min_reputation(store, "alice", 50) is True
        assert permissions.has_min_reputation(store, "alice", 51) is False
        assert permissions.has_min_reputation(store, "mallory", 0) is False

    def test_predicates_do_not_mutate(self, store):
        before = dict(store.users)
        permissions.capabilities(store, "mallory")
        permissions.is_registered(store, "mallory")
        assert store.users == before
        assert "mallory" not in store.users


class TestCanResolve:

    @pytest.mark.parametrize("identity,expected", [
        ("alice", True),       # reporter
        ("fred", True),        # first responder
        ("fire-dept", True),   # emergency service
        ("owner", True),
        ("vera", False),       # verified alone is not enough
        ("mallory", False),
    ])
    def test_resolver_roles(self, store, identity, expected):
        assert permissions.can_resolve(store, identity, _make_alert()) is expected


# ═══════════════════════════════════════════════════════════════════════════
# Event log
# ═══════════════════════════════════════════════════════════════════════════

class TestEventLog:

    def test_sequences_start_at_one(self):
        log = EventLog()
        first = log.emit(EventName.USER_REGISTERED, user="a", timestamp=1)
        second = log.emit(EventName.USER_VERIFIED, user="a")
        assert (first.sequence, second.sequence) == (1, 2)
        assert len(log) == 2

    def test_since_filters_and_limits(self):
        log = EventLog()
        for i in range(5):
            log.emit(EventName.USER_REGISTERED, user=f"u{i}", timestamp=i)
        assert [e.sequence for e in log.since(2)] == [3, 4, 5]
        assert [e.sequence for e in log.since(0, limit=2)] == [1, 2]
        assert log.since(5) == []
        assert [e.sequence for e in log.since(-3)] == [1, 2, 3, 4, 5]

    def test_subscribers_notified_in_order(self):
        log = EventLog()
        seen = []
        unsubscribe = log.subscribe(lambda e: seen.append(e.sequence))
        log.emit(EventName.USER_VERIFIED, user="a")
        log.emit(EventName.USER_VERIFIED, user="b")
        unsubscribe()
        log.emit(EventName.USER_VERIFIED, user="c")
        assert seen == [1, 2]

    def test_failing_subscriber_is_logged_and_skipped(self, caplog):
        log = EventLog()
        seen = []

        def _broken(event):
            raise RuntimeError("consumer crashed")

        log.subscribe(_broken)
        log.subscribe(lambda e: seen.append(e.sequence))

        with caplog.at_level(logging.ERROR, logger="safewatch.app.registry.events"):
            event = log.emit(EventName.USER_VERIFIED, user="a")

        assert event.sequence == 1
        assert len(log) == 1
        assert seen == [1]
        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failures) == 1
        assert failures[0].exc_info[0] is RuntimeError

    def test_to_dict(self):
        log = EventLog()
        event = log.emit(EventName.ALERT_RESPONDED, alert_id=3, responder="bob")
        d = event.to_dict()
        assert d["name"] == "AlertResponded"
        assert d["payload"] == {"alert_id": 3, "responder": "bob"}
        assert d["sequence"] == 1
        assert "T" in d["emitted_at"]


# ═══════════════════════════════════════════════════════════════════════════
# Models
# ═══════════════════════════════════════════════════════════════════════════

class TestModels:

    def test_alert_types(self):
        assert {t.value for t in AlertType} == {
            "EMERGENCY", "SUSPICIOUS", "WEATHER",
            "MISSING_PERSON", "TRAFFIC", "UTILITY",
        }

    def test_terminal_statuses(self):
        assert AlertStatus.ACTIVE.is_terminal is False
        assert AlertStatus.RESOLVED.is_terminal is True
        assert AlertStatus.FALSE_ALARM.is_terminal is True

    def test_alert_has_responder_scan(self):
        alert = _make_alert(responders=["bob", "carol"])
        assert alert.has_responder("carol") is True
        assert alert.has_responder("dave") is False

    def test_alert_to_dict(self):
        d = _make_alert(responders=["bob"]).to_dict()
        assert d["alert_type"] == "TRAFFIC"
        assert d["status"] == "ACTIVE"
        assert d["responders"] == ["bob"]
        assert d["is_verified"] is False

    def test_neighborhood_to_dict_copies_residents(self):
        hood = Neighborhood(
            neighborhood_id=1, name="Besant Nagar",
            center_latitude=0, center_longitude=0, radius=900,
            moderator="vera", created_at=0, residents=["vera"],
        )
        d = hood.to_dict()
        d["residents"].append("mallory")
        assert hood.residents == ["vera"]

    def test_fixed_point_coordinates(self):
        assert to_fixed_point(13.0827) == 13082700
        assert to_fixed_point(-0.1278) == -127800
        assert to_fixed_point(80.2707) == 80270700
        assert to_degrees(13082700) == pytest.approx(13.0827)

    def test_store_allocates_sequential_ids(self):
        s = RegistryStore(owner="owner")
        assert [s.next_alert_id() for _ in range(3)] == [1, 2, 3]
        assert s.next_neighborhood_id() == 1
