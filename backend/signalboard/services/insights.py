"""
Narrative insights and risk indicators derived from the signal log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from signalboard.core.config import AnalyticsConfig
from signalboard.core.time import in_last_n_days, now_utc
from signalboard.services.records import SignalRecord
from signalboard.services.stats import linear_regression, mean, relative_change, round_half_up, safe_ratio
from signalboard.services.timeseries import DailyBucket

logger = logging.getLogger(__name__)

HIGH_URGENCY = {"high", "critical"}
MIN_SIGNALS_FOR_RISKS = 5


@dataclass(frozen=True)
class Insight:
    type: str
    title: str
    message: str
    score: int


@dataclass(frozen=True)
class RiskIndicator:
    type: str
    severity: str
    title: str
    description: str
    affected_count: int


def _pct(ratio: float) -> int:
    return round_half_up(ratio * 100)


def generate_insights(
    series: Sequence[DailyBucket],
    config: AnalyticsConfig | None = None,
    *,
    total_signals: int | None = None,
) -> list[Insight]:
    """
    Narrative insights over the recent window of `series`.

    `total_signals` is the size of the whole signal log; without it, only the
    signals inside `series` decide whether the log is empty.
    """
    config = config or AnalyticsConfig()
    recent = list(series[-config.short_window:])
    previous = list(series[-2 * config.short_window:-config.short_window])
    total_recent = sum(day.signal_count for day in recent)

    if total_signals is None:
        total_signals = sum(day.signal_count for day in series)
    if not total_signals:
        return [
            Insight(
                type="info",
                title="Getting Started",
                message="Start capturing customer signals to see insights and trends appear here.",
                score=0,
            )
        ]

    insights: list[Insight] = []

    volume_change = relative_change(
        mean([day.signal_count for day in recent]),
        mean([day.signal_count for day in previous]),
    )
    if volume_change > config.signal_volume_delta:
        insights.append(
            Insight(
                type="alert",
                title="Signal Volume Spike",
                message=(
                    f"Signal volume increased {_pct(volume_change)}% week over week. This may indicate "
                    "product friction, a recent release issue, or increased customer engagement."
                ),
                score=min(100, 50 + round_half_up(volume_change * 50)),
            )
        )
    elif volume_change < -config.signal_volume_delta:
        insights.append(
            Insight(
                type="warning",
                title="Signal Volume Declining",
                message=(
                    f"Signal volume decreased {abs(_pct(volume_change))}% week over week. "
                    "Monitor customer engagement levels."
                ),
                score=60,
            )
        )
    else:
        insights.append(
            Insight(
                type="success",
                title="Stable Signal Flow",
                message="Signal volume is within expected range.",
                score=85,
            )
        )

    bug_ratio = safe_ratio(sum(day.categories.get("bug", 0) for day in recent), total_recent)
    if bug_ratio > 0.4:
        insights.append(
            Insight(
                type="alert",
                title="High Bug Signal Ratio",
                message=(
                    f"{_pct(bug_ratio)}% of recent signals relate to bugs or reliability issues. "
                    "Consider prioritizing stability work."
                ),
                score=40,
            )
        )
    elif bug_ratio > 0.25:
        insights.append(
            Insight(
                type="warning",
                title="Elevated Bug Reports",
                message=f"{_pct(bug_ratio)}% of recent signals are bug-related. Monitor for patterns.",
                score=65,
            )
        )

    # High and critical both count as urgent here.
    critical_ratio = safe_ratio(sum(day.critical_count + day.high_count for day in recent), total_recent)
    if critical_ratio > 0.2:
        insights.append(
            Insight(
                type="alert",
                title="High Critical Signal Rate",
                message=(
                    f"{_pct(critical_ratio)}% of recent signals are marked as high urgency or critical. "
                    "Immediate action may be required."
                ),
                score=35,
            )
        )

    urgency_values = [day.avg_urgency for day in recent]
    urgency_slope = linear_regression(list(range(len(urgency_values))), urgency_values).slope
    if urgency_slope > 0.2:
        insights.append(
            Insight(
                type="warning",
                title="Rising Signal Urgency",
                message="Average signal urgency is trending upward. Customer pain points may be intensifying.",
                score=55,
            )
        )
    elif urgency_slope < -0.2:
        insights.append(
            Insight(
                type="success",
                title="Declining Signal Urgency",
                message="Average signal urgency is trending downward.",
                score=80,
            )
        )

    enterprise_ratio = safe_ratio(sum(day.tiers.get("enterprise", 0) for day in recent), total_recent)
    if enterprise_ratio > 0.5:
        insights.append(
            Insight(
                type="info",
                title="High Enterprise Signal Volume",
                message=(
                    f"{_pct(enterprise_ratio)}% of recent signals come from enterprise customers. "
                    "Consider prioritizing enterprise-impacting issues."
                ),
                score=70,
            )
        )

    insights.append(
        Insight(
            type="info",
            title="Recommended Action",
            message="Review top recurring signal themes to identify quick wins for the next sprint.",
            score=75,
        )
    )
    logger.debug("Generated %d insights", len(insights))
    return insights


def detect_risks(
    signals: Sequence[SignalRecord],
    series: Sequence[DailyBucket],
    config: AnalyticsConfig | None = None,
    *,
    now: datetime | None = None,
) -> list[RiskIndicator]:
    config = config or AnalyticsConfig()
    if len(signals) < MIN_SIGNALS_FOR_RISKS:
        return []

    reference = now or now_utc()
    recent_signals = [s for s in signals if in_last_n_days(s.timestamp, config.short_window, now=reference)]
    risks: list[RiskIndicator] = []

    critical_enterprise = [s for s in recent_signals if s.tier == "enterprise" and s.urgency in HIGH_URGENCY]
    if len(critical_enterprise) >= 3:
        risks.append(
            RiskIndicator(
                type="churn",
                severity="high",
                title="Enterprise Churn Risk",
                description=(
                    f"{len(critical_enterprise)} critical signals from enterprise customers in the last week"
                ),
                affected_count=len({s.id for s in critical_enterprise}),
            )
        )

    urgent_bugs = [s for s in recent_signals if s.category == "bug" and s.urgency in HIGH_URGENCY]
    if len(urgent_bugs) >= 5:
        risks.append(
            RiskIndicator(
                type="reliability",
                severity="high",
                title="Product Stability Concern",
                description=f"{len(urgent_bugs)} high-priority bug reports in the last week",
                affected_count=len(urgent_bugs),
            )
        )

    avg_per_day = mean([day.signal_count for day in series[-config.short_window:]])
    if avg_per_day > 15:
        risks.append(
            RiskIndicator(
                type="velocity",
                severity="medium",
                title="High Feedback Velocity",
                description=f"Averaging {round_half_up(avg_per_day)} signals per day. May indicate systemic issues.",
                affected_count=round_half_up(avg_per_day * config.short_window),
            )
        )

    logger.debug("Detected %d risk indicators", len(risks))
    return risks
