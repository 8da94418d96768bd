"""
Core configuration for SignalBoard.
Uses Pydantic Settings for environment variable management.
"""
from dataclasses import dataclass
from datetime import tzinfo
from functools import lru_cache
from typing import List, Tuple

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signalboard.core.time import resolve_timezone


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_env_values(cls, data):
        if not isinstance(data, dict):
            return data
        # Treat empty-string env vars as unset so typed fields fall back to defaults.
        return {key: value for key, value in data.items() if value != ""}

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "info"

    # Database
    DATABASE_URL: str = "sqlite:///./signalboard.db"

    # CORS
    FRONTEND_URL: str = "http://localhost:3000"

    # Calendar days (day keys, streaks, cohorts) are computed in this zone.
    REPORTING_TIMEZONE: str = "UTC"

    # Funnel steps, in order. JSON list when set from the environment.
    FUNNEL_STEPS: List[str] = [
        "app_open",
        "view_capture",
        "signal_captured",
        "view_insights",
        "benchmark_created",
    ]
    RETENTION_DAYS: List[int] = [1, 3, 7, 14, 30]

    # Anomaly detection thresholds (fractional deltas)
    ANOMALY_SIGNAL_VOLUME_DELTA: float = 0.30
    ANOMALY_IMPACT_SCORE_DELTA: float = 0.25
    ANOMALY_CRITICAL_SIGNAL_RATIO: float = 0.15
    # When enabled, a rise from an all-zero previous window counts as +100%
    # instead of 0 (which never trips the volume/impact checks).
    ANOMALY_FLAG_ZERO_BASELINE: bool = False

    # Analysis windows (days)
    ANALYSIS_WINDOW_SHORT: int = 7
    ANALYSIS_WINDOW_MEDIUM: int = 14
    ANALYSIS_WINDOW_LONG: int = 30

    # Forecasting
    FORECAST_HORIZON_DAYS: int = 7
    FORECAST_MIN_HISTORY_DAYS: int = 7
    FORECAST_LOOKBACK_DAYS: int = 14

    # Event log limits
    MAX_STORED_EVENTS: int = 5000
    MAX_DISPLAYED_EVENTS: int = 100


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Explicit analytics configuration handed to every analyzer.

    Built from `Settings` at the edges (API, scripts); analyzers never read
    global settings themselves.
    """

    funnel_steps: Tuple[str, ...] = (
        "app_open",
        "view_capture",
        "signal_captured",
        "view_insights",
        "benchmark_created",
    )
    retention_days: Tuple[int, ...] = (1, 3, 7, 14, 30)
    signal_volume_delta: float = 0.30
    impact_score_delta: float = 0.25
    critical_signal_ratio: float = 0.15
    flag_zero_baseline: bool = False
    short_window: int = 7
    medium_window: int = 14
    long_window: int = 30
    forecast_horizon: int = 7
    forecast_min_history: int = 7
    forecast_lookback: int = 14
    max_stored_events: int = 5000
    max_displayed_events: int = 100
    reporting_timezone: str = "UTC"

    @property
    def tz(self) -> tzinfo:
        return resolve_timezone(self.reporting_timezone)

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "AnalyticsConfig":
        source = source or get_settings()
        return cls(
            funnel_steps=tuple(source.FUNNEL_STEPS),
            retention_days=tuple(int(day) for day in source.RETENTION_DAYS),
            signal_volume_delta=float(source.ANOMALY_SIGNAL_VOLUME_DELTA),
            impact_score_delta=float(source.ANOMALY_IMPACT_SCORE_DELTA),
            critical_signal_ratio=float(source.ANOMALY_CRITICAL_SIGNAL_RATIO),
            flag_zero_baseline=bool(source.ANOMALY_FLAG_ZERO_BASELINE),
            short_window=int(source.ANALYSIS_WINDOW_SHORT),
            medium_window=int(source.ANALYSIS_WINDOW_MEDIUM),
            long_window=int(source.ANALYSIS_WINDOW_LONG),
            forecast_horizon=int(source.FORECAST_HORIZON_DAYS),
            forecast_min_history=int(source.FORECAST_MIN_HISTORY_DAYS),
            forecast_lookback=int(source.FORECAST_LOOKBACK_DAYS),
            max_stored_events=int(source.MAX_STORED_EVENTS),
            max_displayed_events=int(source.MAX_DISPLAYED_EVENTS),
            reporting_timezone=source.REPORTING_TIMEZONE,
        )


def get_analytics_config() -> AnalyticsConfig:
    """Dependency returning the analytics configuration for this process."""
    return AnalyticsConfig.from_settings(get_settings())
