"""
Typed, validated records the analyzers consume.

Rows and raw payloads are converted into these at the ingestion boundary
(see `normalization`), so the analytics layer can assume well-formed input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

URGENCY_LEVELS = ("low", "medium", "high", "critical")
URGENCY_RANK = {level: rank for rank, level in enumerate(URGENCY_LEVELS, start=1)}
SOURCES = ("github", "support", "community", "sales", "internal")
CATEGORIES = ("bug", "feature", "performance", "ux", "documentation")
# Catch-all bucket for categories outside CATEGORIES.
FALLBACK_CATEGORY = "feedback"
TIERS = ("enterprise", "pro", "free")

DEFAULT_TIER_WEIGHTS = {"enterprise": 3.0, "pro": 2.0, "free": 1.0}


@dataclass(frozen=True)
class SignalRecord:
    id: str
    title: str
    impact: float
    urgency: str
    source: str
    category: str
    tier: str
    context: str
    timestamp: datetime


@dataclass(frozen=True)
class EventRecord:
    id: str
    type: str
    timestamp: datetime
    session_id: str | None = None
    user_id: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BenchmarkRecord:
    id: str
    name: str
    target_impact: float
    urgency_threshold: int = 3
    tier_weights: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TIER_WEIGHTS))
    active: bool = False

    def weight_for(self, tier: str) -> float:
        try:
            weight = float(self.tier_weights.get(tier, 1.0))
        except (TypeError, ValueError):
            return 1.0
        return weight if weight > 0 else 1.0
