"""
Analytics API Router

Every endpoint recomputes its result from the full signal/event logs; responses
are snapshots.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from signalboard.core.config import AnalyticsConfig, get_analytics_config
from signalboard.core.database import get_db
from signalboard.core.time import now_utc
from signalboard.services import store
from signalboard.services.anomalies import detect_anomalies
from signalboard.services.dashboard import build_dashboard, build_export_payload
from signalboard.services.forecast import forecast_signal_volume
from signalboard.services.funnel import compute_funnel
from signalboard.services.insights import detect_risks, generate_insights
from signalboard.services.north_star import compute_north_star
from signalboard.services.retention import compute_retention
from signalboard.services.timeseries import compute_daily_time_series, compute_weekly_trends

router = APIRouter()


def _daily_series(db: Session, config: AnalyticsConfig, days: Optional[int] = None):
    return compute_daily_time_series(
        store.load_signals(db), days or config.long_window, now=now_utc(), tz=config.tz
    )


@router.get("/north-star")
def north_star(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    metrics = compute_north_star(store.load_signals(db), store.load_benchmarks(db), tz=config.tz)
    return asdict(metrics)


@router.get("/timeseries")
def timeseries(
    days: Optional[int] = Query(None, ge=1, le=365),
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    series = _daily_series(db, config, days)
    return {"days": len(series), "items": [asdict(day) for day in series]}


@router.get("/weekly")
def weekly(db: Session = Depends(get_db)):
    return [asdict(week) for week in compute_weekly_trends(store.load_signals(db))]


@router.get("/funnel")
def funnel(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    return asdict(compute_funnel(config.funnel_steps, store.load_events(db)))


@router.get("/retention")
def retention(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    return asdict(compute_retention(store.load_events(db), config.retention_days, tz=config.tz))


@router.get("/anomalies")
def anomalies(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    items = detect_anomalies(_daily_series(db, config), config)
    return {"count": len(items), "items": [asdict(item) for item in items]}


@router.get("/forecast")
def forecast(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    predictions = forecast_signal_volume(_daily_series(db, config), config, tz=config.tz)
    return [asdict(item) for item in predictions]


@router.get("/insights")
def insights(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    signals = store.load_signals(db)
    series = compute_daily_time_series(signals, config.long_window, now=now_utc(), tz=config.tz)
    items = generate_insights(series, config, total_signals=len(signals))
    return [asdict(item) for item in items]


@router.get("/risks")
def risks(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    signals = store.load_signals(db)
    series = compute_daily_time_series(signals, config.long_window, now=now_utc(), tz=config.tz)
    return [asdict(item) for item in detect_risks(signals, series, config)]


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    return build_dashboard(
        store.load_signals(db),
        store.load_events(db),
        store.load_benchmarks(db),
        config,
    )


@router.get("/export")
def export(
    db: Session = Depends(get_db),
    config: AnalyticsConfig = Depends(get_analytics_config),
):
    return build_export_payload(
        store.load_signals(db),
        store.load_events(db, limit=config.max_stored_events),
        store.load_benchmarks(db),
        config,
    )
