"""
Ingestion-boundary normalization for signals, events and benchmarks.

`normalize_*_payload` validate user-submitted payloads and raise ValueError.
`coerce_*` are tolerant: they apply the documented fallbacks to loosely typed
input (rows, imported JSON) and never raise.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from signalboard.core.time import ensure_utc, now_utc
from signalboard.services.records import (
    CATEGORIES,
    DEFAULT_TIER_WEIGHTS,
    FALLBACK_CATEGORY,
    SOURCES,
    TIERS,
    URGENCY_LEVELS,
    BenchmarkRecord,
    EventRecord,
    SignalRecord,
)

# Legacy numeric urgency from the capture form (1..4).
_NUMERIC_URGENCY = {1: "low", 2: "medium", 3: "high", 4: "critical"}


def _clean_text(value: Any, *, max_len: int) -> str:
    text_value = str(value or "").strip()
    if not text_value:
        return ""
    return text_value[:max_len]


def safe_number(value: Any, fallback: float = 0.0) -> float:
    """Finite float of `value`, or `fallback`."""
    if isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return number


def _clean_metadata(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        return {}
    cleaned: dict[str, Any] = {}
    for key, raw in value.items():
        key_text = _clean_text(key, max_len=80)
        if not key_text:
            continue
        if isinstance(raw, (str, int, float, bool, list, dict)) or raw is None:
            cleaned[key_text] = raw
        else:
            cleaned[key_text] = str(raw)
        if len(cleaned) >= 20:
            break
    return cleaned


def parse_timestamp(value: Any, *, default: datetime | None = None) -> datetime:
    """ISO 8601 string, epoch milliseconds or datetime -> aware UTC datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return default or now_utc()
    text_value = _clean_text(value, max_len=64)
    if text_value:
        if text_value.endswith("Z"):
            text_value = text_value[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text_value))
        except ValueError:
            pass
    return default or now_utc()


def normalize_urgency(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return "critical" if value > 0 else "low"
        return _NUMERIC_URGENCY.get(int(value), "critical" if value > 4 else "low")
    text_value = _clean_text(value, max_len=20).lower()
    if text_value.isascii() and text_value.isdecimal():
        return normalize_urgency(int(text_value))
    return text_value if text_value in URGENCY_LEVELS else "low"


def normalize_category(value: Any) -> str:
    text_value = _clean_text(value, max_len=32).lower()
    return text_value if text_value in CATEGORIES else FALLBACK_CATEGORY


def normalize_tier(value: Any) -> str:
    text_value = _clean_text(value, max_len=20).lower()
    return text_value if text_value in TIERS else "free"


def normalize_source(value: Any) -> str:
    text_value = _clean_text(value, max_len=20).lower()
    return text_value if text_value in SOURCES else "internal"


def normalize_signal_payload(payload: dict[str, Any]) -> dict[str, Any]:
    title = _clean_text(payload.get("title"), max_len=255)
    if not title:
        raise ValueError("title is required")

    impact = safe_number(payload.get("impact"), 0.0)
    if impact <= 0:
        raise ValueError("impact must be greater than 0")
    if impact > 100:
        raise ValueError("impact must be between 0 and 100")

    return {
        "title": title,
        "impact": impact,
        "urgency": normalize_urgency(payload.get("urgency")),
        "source": normalize_source(payload.get("source")),
        "category": normalize_category(payload.get("category")),
        "tier": normalize_tier(payload.get("tier")),
        "context": _clean_text(payload.get("context"), max_len=4000),
        "timestamp": parse_timestamp(payload.get("timestamp")),
    }


def normalize_event_payload(payload: dict[str, Any]) -> dict[str, Any]:
    event_type = _clean_text(payload.get("type") or payload.get("event_type"), max_len=64)
    if not event_type:
        raise ValueError("event type is required")

    return {
        "event_type": event_type,
        "timestamp": parse_timestamp(payload.get("timestamp")),
        "session_id": _clean_text(payload.get("session_id"), max_len=128) or None,
        "user_id": _clean_text(payload.get("user_id"), max_len=128) or None,
        "properties": _clean_metadata(payload.get("properties")),
    }


def normalize_benchmark_payload(payload: dict[str, Any]) -> dict[str, Any]:
    name = _clean_text(payload.get("name"), max_len=100)
    target_impact = safe_number(payload.get("target_impact"), 0.0)
    if not name or target_impact <= 0:
        raise ValueError("benchmark name and target impact required")

    raw_weights = payload.get("tier_weights")
    weights = dict(DEFAULT_TIER_WEIGHTS)
    if isinstance(raw_weights, dict):
        for tier in TIERS:
            if tier in raw_weights:
                weight = safe_number(raw_weights[tier], 0.0)
                if weight > 0:
                    weights[tier] = weight

    return {
        "name": name,
        "target_impact": target_impact,
        "urgency_threshold": int(safe_number(payload.get("urgency_threshold"), 3)) or 3,
        "tier_weights": weights,
    }


def _field(source: Any, name: str, *aliases: str) -> Any:
    for key in (name, *aliases):
        if isinstance(source, dict):
            if key in source:
                return source[key]
        elif hasattr(source, key):
            return getattr(source, key)
    return None


def coerce_signal(source: Any, *, now: datetime | None = None) -> SignalRecord:
    """Tolerant conversion of a row or dict into a SignalRecord."""
    impact = safe_number(_field(source, "impact"), 0.0)
    return SignalRecord(
        id=str(_field(source, "id") or ""),
        title=_clean_text(_field(source, "title"), max_len=255),
        impact=min(100.0, max(0.0, impact)),
        urgency=normalize_urgency(_field(source, "urgency")),
        source=normalize_source(_field(source, "source")),
        category=normalize_category(_field(source, "category")),
        tier=normalize_tier(_field(source, "tier")),
        context=_clean_text(_field(source, "context"), max_len=4000),
        timestamp=parse_timestamp(_field(source, "timestamp"), default=now),
    )


def coerce_event(source: Any, *, now: datetime | None = None) -> EventRecord:
    """Tolerant conversion of a row or dict into an EventRecord."""
    properties = _field(source, "properties")
    return EventRecord(
        id=str(_field(source, "id") or ""),
        type=str(_field(source, "type", "event_type") or ""),
        timestamp=parse_timestamp(_field(source, "timestamp"), default=now),
        session_id=_field(source, "session_id", "sessionId"),
        user_id=_field(source, "user_id", "userId"),
        properties=dict(properties) if isinstance(properties, dict) else {},
    )


def coerce_benchmark(source: Any) -> BenchmarkRecord:
    weights = _field(source, "tier_weights", "customerTierWeight")
    return BenchmarkRecord(
        id=str(_field(source, "id") or ""),
        name=str(_field(source, "name") or ""),
        target_impact=safe_number(_field(source, "target_impact", "targetImpact"), 0.0),
        urgency_threshold=int(safe_number(_field(source, "urgency_threshold", "urgencyThreshold"), 3)),
        tier_weights=dict(weights) if isinstance(weights, dict) else dict(DEFAULT_TIER_WEIGHTS),
        active=bool(_field(source, "active")),
    )
