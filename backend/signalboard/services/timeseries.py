"""
Daily and weekly signal time series.

The daily series is the shared input of the anomaly detector, the forecaster
and the insight generator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Iterable

from signalboard.core.time import FUTURE_TOLERANCE, day_key, day_keys_ending, ensure_utc, now_utc
from signalboard.services.records import CATEGORIES, TIERS, URGENCY_LEVELS, URGENCY_RANK, SignalRecord
from signalboard.services.stats import mean, round_half_up, safe_ratio

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
WEEKLY_BUCKETS = 12


@dataclass
class DailyBucket:
    date: str
    signal_count: int = 0
    total_impact: float = 0.0
    avg_impact: int = 0
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    categories: dict[str, int] = field(default_factory=lambda: {name: 0 for name in CATEGORIES})
    tiers: dict[str, int] = field(default_factory=lambda: {name: 0 for name in TIERS})
    # Sum of urgency ranks (low=1 .. critical=4); used for urgency trends.
    urgency_rank_total: int = 0

    @property
    def avg_urgency(self) -> float:
        return round(safe_ratio(self.urgency_rank_total, self.signal_count), 1)

    def add(self, signal: SignalRecord) -> None:
        self.signal_count += 1
        self.total_impact += float(signal.impact or 0)

        urgency = str(signal.urgency or "low").lower()
        if urgency not in URGENCY_LEVELS:
            urgency = "low"
        if urgency == "critical":
            self.critical_count += 1
        elif urgency == "high":
            self.high_count += 1
        elif urgency == "medium":
            self.medium_count += 1
        else:
            self.low_count += 1
        self.urgency_rank_total += URGENCY_RANK[urgency]

        category = str(signal.category or "").lower()
        if category in self.categories:
            self.categories[category] += 1

        tier = str(signal.tier or "free").lower()
        if tier in self.tiers:
            self.tiers[tier] += 1


@dataclass(frozen=True)
class WeeklyBucket:
    week: str
    start: datetime
    total_signals: int
    total_impact: float
    avg_urgency: float
    bug_ratio: int
    enterprise_ratio: int


def compute_daily_time_series(
    signals: Iterable[SignalRecord],
    days: int = DEFAULT_WINDOW_DAYS,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[DailyBucket]:
    """
    Bucket signals into `days` calendar days ending today, oldest first.

    Every day in the window is present even without signals. Signals whose
    day falls outside the window are ignored.
    """
    days = max(0, int(days))
    reference = now or now_utc()
    buckets = {key: DailyBucket(date=key) for key in day_keys_ending(reference, days, tz)}

    skipped = 0
    for signal in signals:
        bucket = buckets.get(day_key(signal.timestamp or reference, tz))
        if bucket is None:
            skipped += 1
            continue
        bucket.add(signal)

    for bucket in buckets.values():
        bucket.avg_impact = round_half_up(safe_ratio(bucket.total_impact, bucket.signal_count))

    if skipped:
        logger.debug("Daily series: %d signals outside the %d-day window", skipped, days)
    return list(buckets.values())


def compute_weekly_trends(
    signals: Iterable[SignalRecord],
    weeks: int = WEEKLY_BUCKETS,
    *,
    now: datetime | None = None,
) -> list[WeeklyBucket]:
    """
    Rolling seven-day buckets, oldest first, labelled W1..Wn. The last bucket
    is the seven days ending now.
    """
    reference = ensure_utc(now) if now is not None else now_utc()
    signals = list(signals)
    trends: list[WeeklyBucket] = []
    for offset in range(weeks - 1, -1, -1):
        end = reference - timedelta(days=offset * 7)
        start = end - timedelta(days=7)
        if offset == 0:
            end += FUTURE_TOLERANCE
        in_week = [s for s in signals if start <= ensure_utc(s.timestamp) < end]
        count = len(in_week)
        bugs = sum(1 for s in in_week if s.category == "bug")
        enterprise = sum(1 for s in in_week if s.tier == "enterprise")
        trends.append(
            WeeklyBucket(
                week=f"W{weeks - offset}",
                start=start,
                total_signals=count,
                total_impact=sum(float(s.impact or 0) for s in in_week),
                avg_urgency=round(mean([URGENCY_RANK.get(s.urgency, 1) for s in in_week]), 1),
                bug_ratio=round_half_up(100 * safe_ratio(bugs, count)),
                enterprise_ratio=round_half_up(100 * safe_ratio(enterprise, count)),
            )
        )
    return trends
