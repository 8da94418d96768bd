"""Database models."""
from signalboard.models.models import AnalyticsEvent, Benchmark, Signal

__all__ = [
    "AnalyticsEvent",
    "Benchmark",
    "Signal",
]
