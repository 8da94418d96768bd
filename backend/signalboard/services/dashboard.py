"""
Composition of the analyzers into dashboard and export payloads.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Sequence

from signalboard import __version__
from signalboard.core.config import AnalyticsConfig
from signalboard.core.time import day_key, in_last_n_days, now_utc
from signalboard.services.anomalies import detect_anomalies
from signalboard.services.forecast import forecast_signal_volume
from signalboard.services.funnel import compute_funnel
from signalboard.services.insights import HIGH_URGENCY, detect_risks, generate_insights
from signalboard.services.north_star import compute_north_star
from signalboard.services.records import BenchmarkRecord, EventRecord, SignalRecord
from signalboard.services.retention import compute_retention
from signalboard.services.stats import safe_ratio
from signalboard.services.timeseries import compute_daily_time_series, compute_weekly_trends


@dataclass(frozen=True)
class DashboardStats:
    daily_impact: float
    target_impact: float
    impact_progress: float
    critical_today: int
    weekly_velocity: int


def compute_dashboard_stats(
    signals: Sequence[SignalRecord],
    benchmark: BenchmarkRecord | None,
    *,
    now: datetime | None = None,
    config: AnalyticsConfig | None = None,
) -> DashboardStats:
    """Tier-weighted impact captured today against the active benchmark."""
    config = config or AnalyticsConfig()
    reference = now or now_utc()
    today = day_key(reference, config.tz)
    todays = [s for s in signals if day_key(s.timestamp, config.tz) == today]

    daily_impact = sum(
        float(s.impact or 0) * (benchmark.weight_for(s.tier) if benchmark else 1.0) for s in todays
    )
    target = float(benchmark.target_impact) if benchmark else 0.0
    return DashboardStats(
        daily_impact=daily_impact,
        target_impact=target,
        impact_progress=min(1.0, safe_ratio(daily_impact, target)),
        critical_today=sum(1 for s in todays if s.urgency in HIGH_URGENCY),
        weekly_velocity=sum(1 for s in signals if in_last_n_days(s.timestamp, 7, now=reference)),
    )


def build_dashboard(
    signals: Sequence[SignalRecord],
    events: Sequence[EventRecord],
    benchmarks: Sequence[BenchmarkRecord],
    config: AnalyticsConfig,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Every analytics view computed from one snapshot of the logs."""
    reference = now or now_utc()
    tz = config.tz
    series = compute_daily_time_series(signals, config.long_window, now=reference, tz=tz)
    active = next((b for b in benchmarks if b.active), benchmarks[0] if benchmarks else None)

    return {
        "generated_at": reference.isoformat(),
        "stats": asdict(compute_dashboard_stats(signals, active, now=reference, config=config)),
        "north_star": asdict(compute_north_star(signals, benchmarks, now=reference, tz=tz)),
        "timeseries": [asdict(day) for day in series],
        "weekly": [asdict(week) for week in compute_weekly_trends(signals, now=reference)],
        "anomalies": [asdict(item) for item in detect_anomalies(series, config)],
        "funnel": asdict(compute_funnel(config.funnel_steps, events)),
        "retention": asdict(compute_retention(events, config.retention_days, tz=tz)),
        "forecast": [asdict(item) for item in forecast_signal_volume(series, config, now=reference, tz=tz)],
        "insights": [
            asdict(item) for item in generate_insights(series, config, total_signals=len(signals))
        ],
        "risks": [asdict(item) for item in detect_risks(signals, series, config, now=reference)],
    }


def build_export_payload(
    signals: Sequence[SignalRecord],
    events: Sequence[EventRecord],
    benchmarks: Sequence[BenchmarkRecord],
    config: AnalyticsConfig,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    reference = now or now_utc()
    return {
        "exported_at": reference.isoformat(),
        "version": __version__,
        "events": [asdict(event) for event in list(events)[-config.max_stored_events:]],
        "signals": [asdict(signal) for signal in signals],
        "benchmarks": [asdict(benchmark) for benchmark in benchmarks],
        "metrics": asdict(compute_north_star(signals, benchmarks, now=reference, tz=config.tz)),
    }
