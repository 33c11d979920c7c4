"""
test_api.py — HTTP surface of the registry.

Each test gets a fresh Registry injected through FastAPI's dependency
overrides, so tests never share state through the process-wide instance.

Run with:
    pytest tests/test_api.py -v
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from safewatch.app.api.dependencies import registry_dependency
from safewatch.app.core.config import settings
from safewatch.app.main import app
from safewatch.app.registry.models import to_fixed_point
from safewatch.app.registry.service import Registry

OWNER = "owner"
HEADER = settings.CALLER_HEADER


def _as(identity: str) -> dict:
    return {HEADER: identity}


def _alert_body(**overrides) -> dict:
    body = {
        "alert_type": "EMERGENCY",
        "location": "Anna Salai",
        "description": "Two-car collision",
        "latitude": to_fixed_point(13.0827),
        "longitude": to_fixed_point(80.2707),
        "radius": 500,
    }
    body.update(overrides)
    return body


@pytest.fixture
def registry() -> Registry:
    return Registry(owner=OWNER, clock=lambda: 1_700_000_000)


@pytest.fixture
def client(registry):
    app.dependency_overrides[registry_dependency] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def _register(client: TestClient, *identities: str) -> None:
    for identity in identities:
        resp = client.post(
            "/api/v1/users/register",
            json={"contact_info": f"{identity}@example.com"},
            headers=_as(identity),
        )
        assert resp.status_code == 201


# ═══════════════════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════════════════

class TestUserEndpoints:

    def test_register_returns_profile(self, client):
        resp = client.post(
            "/api/v1/users/register",
            json={"contact_info": "+919876543210"},
            headers=_as("alice"),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["identity"] == "alice"
        assert body["reputation_score"] == 50
        assert body["is_verified"] is False

    def test_register_twice_conflicts(self, client):
        _register(client, "alice")
        resp = client.post(
            "/api/v1/users/register",
            json={"contact_info": "again"},
            headers=_as("alice"),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "CONFLICT"

    def test_missing_caller_header_forbidden(self, client):
        resp = client.post("/api/v1/users/register", json={"contact_info": "x"})
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    def test_verify_requires_owner(self, client):
        _register(client, "alice", "bob")
        resp = client.post("/api/v1/users/alice/verify", headers=_as("bob"))
        assert resp.status_code == 403

        resp = client.post("/api/v1/users/alice/verify", headers=_as(OWNER))
        assert resp.status_code == 200
        assert resp.json()["reputation_score"] == 75

    def test_first_responder_flag(self, client):
        _register(client, "bob")
        resp = client.put(
            "/api/v1/users/bob/first-responder",
            json={"is_first_responder": True},
            headers=_as(OWNER),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_STATE"

        client.post("/api/v1/users/bob/verify", headers=_as(OWNER))
        resp = client.put(
            "/api/v1/users/bob/first-responder",
            json={"is_first_responder": True},
            headers=_as(OWNER),
        )
        assert resp.status_code == 200
        assert resp.json()["is_first_responder"] is True

    def test_emergency_services(self, client):
        resp = client.post(
            "/api/v1/users/emergency-services",
            json={"identity": "fire-dept"},
            headers=_as(OWNER),
        )
        assert resp.status_code == 200
        resp = client.get("/api/v1/users/emergency-services/fire-dept")
        assert resp.json()["is_emergency_service"] is True
        resp = client.get("/api/v1/users/emergency-services/police")
        assert resp.json()["is_emergency_service"] is False

    def test_unknown_profile_not_found(self, client):
        resp = client.get("/api/v1/users/mallory")
        assert resp.status_code == 404
        error = resp.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert error["details"]["identity"] == "mallory"


# ═══════════════════════════════════════════════════════════════════════════
# Alerts
# ═══════════════════════════════════════════════════════════════════════════

class TestAlertEndpoints:

    def test_full_lifecycle(self, client):
        _register(client, "alice", "bob")

        resp = client.post("/api/v1/alerts", json=_alert_body(), headers=_as("alice"))
        assert resp.status_code == 201
        alert_id = resp.json()["id"]
        assert alert_id == 1

        resp = client.post(f"/api/v1/alerts/{alert_id}/respond", headers=_as("bob"))
        assert resp.status_code == 200
        assert resp.json()["responders"] == ["bob"]

        resp = client.post(
            f"/api/v1/alerts/{alert_id}/resolve",
            json={"new_status": "RESOLVED"},
            headers=_as("alice"),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "RESOLVED"

        assert client.get("/api/v1/users/alice").json()["reputation_score"] == 60
        assert client.get("/api/v1/users/bob").json()["reputation_score"] == 60

    def test_radius_out_of_range(self, client):
        _register(client, "alice")
        resp = client.post(
            "/api/v1/alerts", json=_alert_body(radius=5001), headers=_as("alice"),
        )
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["field"] == "radius"

    def test_unregistered_reporter_forbidden(self, client):
        resp = client.post("/api/v1/alerts", json=_alert_body(), headers=_as("mallory"))
        assert resp.status_code == 403

    def test_duplicate_response_conflicts(self, client):
        _register(client, "alice", "bob")
        client.post("/api/v1/alerts", json=_alert_body(), headers=_as("alice"))
        client.post("/api/v1/alerts/1/respond", headers=_as("bob"))
        resp = client.post("/api/v1/alerts/1/respond", headers=_as("bob"))
        assert resp.status_code == 409
        assert client.get("/api/v1/alerts/1/responders").json() == ["bob"]

    def test_resolve_with_active_rejected(self, client):
        _register(client, "alice")
        client.post("/api/v1/alerts", json=_alert_body(), headers=_as("alice"))
        resp = client.post(
            "/api/v1/alerts/1/resolve",
            json={"new_status": "ACTIVE"},
            headers=_as("alice"),
        )
        assert resp.status_code == 422

    def test_active_and_count(self, client):
        _register(client, "alice")
        for _ in range(3):
            client.post("/api/v1/alerts", json=_alert_body(), headers=_as("alice"))
        client.post(
            "/api/v1/alerts/2/resolve",
            json={"new_status": "FALSE_ALARM"},
            headers=_as(OWNER),
        )
        assert client.get("/api/v1/alerts/active").json() == {"ids": [1, 3], "count": 2}
        assert client.get("/api/v1/alerts/count").json() == {"total": 3}
        assert client.get("/api/v1/users/alice/alerts").json()["ids"] == [1, 2, 3]

    def test_unknown_alert_not_found(self, client):
        assert client.get("/api/v1/alerts/7").status_code == 404
        assert client.get("/api/v1/alerts/7/responders").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Neighborhoods, events, health
# ═══════════════════════════════════════════════════════════════════════════

class TestNeighborhoodEndpoints:

    def test_create_and_join(self, client):
        _register(client, "alice", "bob")
        client.post("/api/v1/users/alice/verify", headers=_as(OWNER))

        resp = client.post(
            "/api/v1/neighborhoods",
            json={
                "name": "T. Nagar",
                "center_latitude": 13041800,
                "center_longitude": 80233900,
                "radius": 1500,
            },
            headers=_as("alice"),
        )
        assert resp.status_code == 201
        nid = resp.json()["id"]

        resp = client.post(f"/api/v1/neighborhoods/{nid}/join", headers=_as("bob"))
        assert resp.status_code == 200
        assert resp.json()["residents"] == ["alice", "bob"]
        assert client.get("/api/v1/neighborhoods/count").json() == {"total": 1}

    def test_unverified_creator_forbidden(self, client):
        _register(client, "bob")
        resp = client.post(
            "/api/v1/neighborhoods",
            json={"name": "Adyar", "center_latitude": 0, "center_longitude": 0, "radius": 1},
            headers=_as("bob"),
        )
        assert resp.status_code == 403

    def test_join_unknown_not_found(self, client):
        _register(client, "bob")
        resp = client.post("/api/v1/neighborhoods/9/join", headers=_as("bob"))
        assert resp.status_code == 404


class TestEventFeed:

    def test_feed_since(self, client):
        _register(client, "alice")
        client.post("/api/v1/alerts", json=_alert_body(), headers=_as("alice"))

        body = client.get("/api/v1/events").json()
        assert [e["name"] for e in body["events"]] == ["UserRegistered", "AlertCreated"]
        assert body["last_sequence"] == 2

        body = client.get("/api/v1/events", params={"since": 2}).json()
        assert body == {"events": [], "last_sequence": 2}


class TestHealth:

    def test_health_reports_registry_counts(self, client):
        _register(client, "alice")
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        registry_comp = next(c for c in body["components"] if c["name"] == "registry")
        assert registry_comp["details"]["users"] == 1

    def test_liveness_and_readiness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}
        assert client.get("/health/ready").status_code == 200

    def test_request_id_header(self, client):
        resp = client.get("/", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"
        assert "X-Process-Time" in resp.headers
