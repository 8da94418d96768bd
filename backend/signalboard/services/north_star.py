"""
Headline KPIs and the engagement streak.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Sequence

from signalboard.core.time import day_key, in_last_n_days, local_date, now_utc
from signalboard.services.records import BenchmarkRecord, SignalRecord
from signalboard.services.stats import mean, round_half_up, safe_ratio

STREAK_LOOKBACK_DAYS = 365


@dataclass(frozen=True)
class NorthStarMetrics:
    weekly_active_signals: int
    monthly_active_signals: int
    avg_impact: int
    critical_ratio: float
    critical_signals: int
    active_benchmarks: int
    engagement_streak: int
    timestamp: str


def compute_engagement_streak(
    signals: Iterable[SignalRecord],
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
    lookback_days: int = STREAK_LOOKBACK_DAYS,
) -> int:
    """Consecutive days with at least one signal, walking back from today."""
    reference = now or now_utc()
    logged_days = {day_key(signal.timestamp or reference, tz) for signal in signals}
    if not logged_days:
        return 0

    today = local_date(reference, tz)
    streak = 0
    for offset in range(lookback_days):
        if day_key(today - timedelta(days=offset)) not in logged_days:
            break
        streak += 1
    return streak


def compute_north_star(
    signals: Sequence[SignalRecord],
    benchmarks: Iterable[BenchmarkRecord] = (),
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> NorthStarMetrics:
    reference = now or now_utc()
    last_7_days = [s for s in signals if in_last_n_days(s.timestamp, 7, now=reference)]
    last_30_days = [s for s in signals if in_last_n_days(s.timestamp, 30, now=reference)]

    critical_signals = sum(1 for s in last_7_days if s.urgency == "critical")
    return NorthStarMetrics(
        weekly_active_signals=len(last_7_days),
        monthly_active_signals=len(last_30_days),
        avg_impact=round_half_up(mean([float(s.impact or 0) for s in last_7_days])),
        critical_ratio=safe_ratio(critical_signals, len(last_7_days)),
        critical_signals=critical_signals,
        active_benchmarks=sum(1 for b in benchmarks if b.active),
        engagement_streak=compute_engagement_streak(signals, now=reference, tz=tz),
        timestamp=reference.isoformat(),
    )
