"""
Signals API Router
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from signalboard.core.config import AnalyticsConfig, get_analytics_config
from signalboard.core.database import get_db
from signalboard.services import store

router = APIRouter()
logger = logging.getLogger(__name__)


class SignalCreateRequest(BaseModel):
    title: str
    impact: Union[float, str, None] = None
    urgency: Union[str, int, None] = None
    source: Optional[str] = None
    category: Optional[str] = None
    tier: Optional[str] = None
    context: Optional[str] = None
    timestamp: Union[str, int, float, None] = None


@router.post("")
def create_signal(request: SignalCreateRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        signal = store.record_signal(db, request.model_dump())
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        db.rollback()
        logger.exception("Failed to save signal")
        raise HTTPException(status_code=500, detail="Failed to save signal") from e
    return {"ok": True, "signal": asdict(signal)}


@router.get("")
def list_signals(
    limit: int = Query(100, ge=1, le=1000),
    category: Optional[str] = Query(None, description="Filter by category"),
    db: Session = Depends(get_db),
):
    """Most recent signals first."""
    return [asdict(signal) for signal in store.list_signals(db, limit=limit, category=category)]


@router.delete("/today")
def clear_today(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    removed = store.clear_signals_for_day(db, tz=config.tz)
    return {"ok": True, "removed": removed}


@router.delete("/{signal_id}")
def delete_signal(signal_id: int, db: Session = Depends(get_db)):
    try:
        store.delete_signal(db, signal_id)
    except store.NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"ok": True}
