"""
Health check aggregation — deep health check for the service.

Checks:
    • Registry store (lock acquirable, record counts)
    • Event log (notification count)

Returns a structured health report suitable for:
    - Kubernetes liveness/readiness endpoints
    - Load balancer health checks
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from safewatch.app.core.config import settings
from safewatch.app.registry.service import Registry

logger = logging.getLogger(__name__)

# A registry lock held longer than this marks the store unhealthy
LOCK_TIMEOUT_SECONDS = 1.0


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # partial functionality
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    latency_ms: float = 0.0
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    version: str = settings.APP_VERSION
    environment: str = settings.ENVIRONMENT
    timestamp: str = ""
    uptime_seconds: float = 0.0
    components: List[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "components": [c.to_dict() for c in self.components],
        }


# Track application start time
_start_time = time.monotonic()


def check_registry(registry: Registry) -> ComponentHealth:
    """Check the registry lock is free and report record counts."""
    comp = ComponentHealth(name="registry")
    start = time.monotonic()

    acquired = registry._lock.acquire(timeout=LOCK_TIMEOUT_SECONDS)
    if not acquired:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = f"Registry lock busy for over {LOCK_TIMEOUT_SECONDS:.1f}s"
        comp.latency_ms = (time.monotonic() - start) * 1000
        logger.warning(comp.message)
        return comp

    try:
        store = registry.store
        comp.details = {
            "owner": store.owner,
            "users": len(store.users),
            "alerts": store.alert_counter,
            "neighborhoods": store.neighborhood_counter,
            "emergency_services": len(store.emergency_services),
        }
    finally:
        registry._lock.release()

    comp.message = "Store available"
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def check_event_log(registry: Registry) -> ComponentHealth:
    """Report the notification log size."""
    comp = ComponentHealth(name="event_log")
    start = time.monotonic()
    comp.details = {"events": len(registry.events)}
    comp.message = "Event log available"
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def run_health_check(registry: Registry) -> HealthReport:
    """Run all health checks and aggregate into a report."""
    report = HealthReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=time.monotonic() - _start_time,
    )

    report.components.append(check_registry(registry))
    report.components.append(check_event_log(registry))

    statuses = [c.status for c in report.components]
    if HealthStatus.UNHEALTHY in statuses:
        report.status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        report.status = HealthStatus.DEGRADED
    else:
        report.status = HealthStatus.HEALTHY

    return report
