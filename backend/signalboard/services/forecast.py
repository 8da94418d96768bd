"""
Linear-trend forecast of daily signal volume.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Sequence

from signalboard.core.config import AnalyticsConfig
from signalboard.core.time import local_date, now_utc
from signalboard.services.stats import linear_regression, round_half_up
from signalboard.services.timeseries import DailyBucket

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 95
MIN_CONFIDENCE = 60
CONFIDENCE_STEP = 5


@dataclass(frozen=True)
class Prediction:
    date: str
    weekday: str
    days_ahead: int
    projected_signals: int
    confidence: int
    trend: str


def trend_direction(slope: float) -> str:
    if slope > 0:
        return "increasing"
    if slope < 0:
        return "decreasing"
    return "stable"


def forecast_signal_volume(
    series: Sequence[DailyBucket],
    config: AnalyticsConfig | None = None,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[Prediction]:
    """Project daily signal counts `forecast_horizon` days past today."""
    config = config or AnalyticsConfig()
    recent = list(series[-config.forecast_lookback:]) if config.forecast_lookback > 0 else []
    if len(recent) < config.forecast_min_history:
        logger.debug("Insufficient data for forecasting: %d days", len(recent))
        return []

    xs = list(range(len(recent)))
    ys = [day.signal_count for day in recent]
    regression = linear_regression(xs, ys)
    trend = trend_direction(regression.slope)
    today = local_date(now or now_utc(), tz)

    predictions: list[Prediction] = []
    for ahead in range(1, config.forecast_horizon + 1):
        projected = regression.slope * (len(recent) + ahead) + regression.intercept
        future = today + timedelta(days=ahead)
        predictions.append(
            Prediction(
                date=future.isoformat(),
                weekday=future.strftime("%a"),
                days_ahead=ahead,
                projected_signals=max(0, round_half_up(projected)),
                confidence=max(MIN_CONFIDENCE, MAX_CONFIDENCE - ahead * CONFIDENCE_STEP),
                trend=trend,
            )
        )
    return predictions
