"""
Analytics events API Router
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from signalboard.core.config import AnalyticsConfig, get_analytics_config
from signalboard.core.database import get_db
from signalboard.services import store

router = APIRouter()
logger = logging.getLogger(__name__)


class EventTrackRequest(BaseModel):
    type: str
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    timestamp: Union[str, int, float, None] = None
    properties: dict[str, Any] = Field(default_factory=dict)


@router.post("")
def track_event(
    request: EventTrackRequest,
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    try:
        event = store.track_event(db, request.model_dump(), max_events=config.max_stored_events)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        db.rollback()
        logger.exception("Failed to track event")
        raise HTTPException(status_code=500, detail="Failed to track event") from e
    return {"ok": True, "event": asdict(event)}


@router.get("")
def recent_events(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    """Newest events first, capped at the display limit."""
    resolved = min(limit or config.max_displayed_events, config.max_displayed_events)
    return [asdict(event) for event in store.list_events(db, limit=resolved)]
