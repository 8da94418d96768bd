"""
Week-over-week anomaly detection over the daily signal series.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from signalboard.core.config import AnalyticsConfig
from signalboard.services.stats import mean, relative_change, round_half_up, safe_ratio
from signalboard.services.timeseries import DailyBucket

logger = logging.getLogger(__name__)

# Concentration above this share of recent signals flags a category.
CATEGORY_CONCENTRATION_THRESHOLD = 0.5
VOLUME_HIGH_SEVERITY = 0.5
IMPACT_HIGH_SEVERITY = 0.4


@dataclass(frozen=True)
class Anomaly:
    type: str
    severity: str
    message: str
    delta: float
    metric: str
    current: float
    previous: float | None = None
    details: dict[str, Any] = field(default_factory=dict)


def _window_delta(recent: float, previous: float, *, flag_zero_baseline: bool) -> float:
    if flag_zero_baseline and not previous and recent > 0:
        return 1.0
    return relative_change(recent, previous)


def _direction(delta: float) -> str:
    return "increased" if delta > 0 else "decreased"


def detect_anomalies(series: Sequence[DailyBucket], config: AnalyticsConfig | None = None) -> list[Anomaly]:
    """
    Compare the last `short_window` days against the preceding days of the
    `medium_window` span. Fewer than `medium_window` buckets yields no anomalies.
    """
    config = config or AnalyticsConfig()
    if not series or len(series) < config.medium_window:
        logger.debug("Anomaly detection skipped: %d days of history", len(series or []))
        return []

    recent = list(series[-config.short_window:])
    previous = list(series[-config.medium_window:-config.short_window])
    if not previous:
        return []

    anomalies: list[Anomaly] = []

    recent_volume = mean([day.signal_count for day in recent])
    previous_volume = mean([day.signal_count for day in previous])
    volume_delta = _window_delta(recent_volume, previous_volume, flag_zero_baseline=config.flag_zero_baseline)
    if abs(volume_delta) >= config.signal_volume_delta:
        anomalies.append(
            Anomaly(
                type="signal_volume_anomaly",
                severity="high" if abs(volume_delta) > VOLUME_HIGH_SEVERITY else "medium",
                message=(
                    f"Signal volume {_direction(volume_delta)} by "
                    f"{abs(volume_delta * 100):.0f}% week-over-week"
                ),
                delta=volume_delta,
                metric="volume",
                current=round_half_up(recent_volume),
                previous=round_half_up(previous_volume),
            )
        )

    recent_impact = mean([day.avg_impact for day in recent])
    previous_impact = mean([day.avg_impact for day in previous])
    impact_delta = _window_delta(recent_impact, previous_impact, flag_zero_baseline=config.flag_zero_baseline)
    if abs(impact_delta) >= config.impact_score_delta:
        anomalies.append(
            Anomaly(
                type="impact_score_anomaly",
                severity="high" if abs(impact_delta) > IMPACT_HIGH_SEVERITY else "medium",
                message=(
                    f"Average impact score {_direction(impact_delta)} by "
                    f"{abs(impact_delta * 100):.0f}% week-over-week"
                ),
                delta=impact_delta,
                metric="impact",
                current=round_half_up(recent_impact),
                previous=round_half_up(previous_impact),
            )
        )

    recent_critical = sum(day.critical_count for day in recent)
    recent_total = sum(day.signal_count for day in recent)
    critical_ratio = safe_ratio(recent_critical, recent_total)
    if recent_total > 0 and critical_ratio >= config.critical_signal_ratio:
        anomalies.append(
            Anomaly(
                type="critical_signal_spike",
                severity="high",
                message=f"{critical_ratio * 100:.1f}% of recent signals are critical urgency",
                delta=critical_ratio,
                metric="critical_ratio",
                current=recent_critical,
                details={"total": recent_total},
            )
        )

    category_totals: dict[str, int] = {}
    for day in recent:
        for category, count in day.categories.items():
            category_totals[category] = category_totals.get(category, 0) + count
    if category_totals and recent_total > 0:
        dominant = max(category_totals, key=lambda name: category_totals[name])
        concentration = category_totals[dominant] / recent_total
        if concentration > CATEGORY_CONCENTRATION_THRESHOLD:
            anomalies.append(
                Anomaly(
                    type="category_concentration",
                    severity="medium",
                    message=f"{concentration * 100:.1f}% of recent signals are {dominant} related",
                    delta=concentration,
                    metric="category",
                    current=category_totals[dominant],
                    details={"category": dominant, "total": recent_total},
                )
            )

    logger.debug("Detected %d anomalies", len(anomalies))
    return anomalies
