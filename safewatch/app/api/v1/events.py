"""
FastAPI route: notification feed.

    GET /api/v1/events?since=N   — events with sequence > N, oldest first

Indexers and notification services poll this with the last sequence
they processed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from safewatch.app.api.dependencies import registry_dependency
from safewatch.app.api.schemas import EventFeedResponse, EventResponse
from safewatch.app.core.config import settings
from safewatch.app.registry.service import Registry

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.get("", response_model=EventFeedResponse, summary="Read the notification feed")
def list_events(
    since: int = Query(0, ge=0, description="Last sequence already seen"),
    registry: Registry = Depends(registry_dependency),
):
    events = registry.get_events(since, limit=settings.EVENT_LOG_LIMIT)
    return EventFeedResponse(
        events=[EventResponse(**e.to_dict()) for e in events],
        last_sequence=events[-1].sequence if events else since,
    )
