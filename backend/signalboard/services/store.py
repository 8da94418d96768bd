"""
Persistence for the signal log, the event log and benchmarks.

The logs are the single source of truth; every analytics result is
recomputed from the records returned by the `load_*` helpers.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, tzinfo
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from signalboard.core.time import ensure_utc, local_date, now_utc
from signalboard.models.models import AnalyticsEvent, Benchmark, Signal
from signalboard.services.normalization import (
    coerce_benchmark,
    coerce_event,
    coerce_signal,
    normalize_benchmark_payload,
    normalize_event_payload,
    normalize_signal_payload,
)
from signalboard.services.records import DEFAULT_TIER_WEIGHTS, BenchmarkRecord, EventRecord, SignalRecord

logger = logging.getLogger(__name__)

DEFAULT_BENCHMARK_NAME = "Q1 Baseline"
DEFAULT_TARGET_IMPACT = 1000.0


class NotFoundError(LookupError):
    """Raised when a referenced signal or benchmark does not exist."""


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


def record_signal(db: Session, payload: dict[str, Any]) -> SignalRecord:
    clean = normalize_signal_payload(payload)
    signal = Signal(**clean)
    db.add(signal)
    db.commit()
    logger.info("Signal saved: id=%s title=%r", signal.id, signal.title)
    return coerce_signal(signal)


def list_signals(db: Session, *, limit: int | None = None, category: str | None = None) -> list[SignalRecord]:
    query = db.query(Signal).order_by(Signal.timestamp.desc(), Signal.id.desc())
    if category:
        query = query.filter(Signal.category == category.strip().lower())
    if limit:
        query = query.limit(limit)
    return [coerce_signal(row) for row in query.all()]


def delete_signal(db: Session, signal_id: int) -> None:
    signal = db.query(Signal).filter(Signal.id == signal_id).first()
    if signal is None:
        raise NotFoundError("Signal not found")
    db.delete(signal)
    db.commit()


def _local_day_bounds(now: datetime, tz: tzinfo | None) -> tuple[datetime, datetime]:
    today = local_date(now, tz)
    start = datetime.combine(today, time.min, tzinfo=tz or ensure_utc(now).tzinfo)
    return ensure_utc(start), ensure_utc(start + timedelta(days=1))


def clear_signals_for_day(db: Session, *, now: datetime | None = None, tz: tzinfo | None = None) -> int:
    """Remove every signal captured on today's calendar day."""
    start, end = _local_day_bounds(now or now_utc(), tz)
    removed = (
        db.query(Signal)
        .filter(Signal.timestamp >= start, Signal.timestamp < end)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Cleared %d signals for %s", removed, start.date().isoformat())
    return int(removed or 0)


def load_signals(db: Session) -> list[SignalRecord]:
    return [coerce_signal(row) for row in db.query(Signal).order_by(Signal.id.asc()).all()]


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def track_event(db: Session, payload: dict[str, Any], *, max_events: int) -> EventRecord:
    """Append an event, then trim the log to the newest `max_events` entries."""
    clean = normalize_event_payload(payload)
    event = AnalyticsEvent(**clean)
    db.add(event)
    db.flush()
    record = coerce_event(event)

    trimmed = trim_events(db, max_events=max_events)
    db.commit()
    if trimmed:
        logger.info("Trimmed %d events (max_events=%d)", trimmed, max_events)
    return record


def trim_events(db: Session, *, max_events: int) -> int:
    total = int(db.query(func.count(AnalyticsEvent.id)).scalar() or 0)
    overflow = total - max(0, int(max_events))
    if overflow <= 0:
        return 0
    stale_ids = [
        row.id
        for row in db.query(AnalyticsEvent.id).order_by(AnalyticsEvent.id.asc()).limit(overflow).all()
    ]
    db.query(AnalyticsEvent).filter(AnalyticsEvent.id.in_(stale_ids)).delete(synchronize_session=False)
    return len(stale_ids)


def list_events(db: Session, *, limit: int) -> list[EventRecord]:
    rows = db.query(AnalyticsEvent).order_by(AnalyticsEvent.id.desc()).limit(limit).all()
    return [coerce_event(row) for row in rows]


def load_events(db: Session, *, limit: int | None = None) -> list[EventRecord]:
    """Events oldest first; with `limit`, only the newest `limit` of them."""
    query = db.query(AnalyticsEvent).order_by(AnalyticsEvent.id.desc())
    if limit:
        query = query.limit(limit)
    return [coerce_event(row) for row in reversed(query.all())]


# ---------------------------------------------------------------------------
# Benchmarks
# ---------------------------------------------------------------------------


def create_benchmark(db: Session, payload: dict[str, Any]) -> BenchmarkRecord:
    clean = normalize_benchmark_payload(payload)
    benchmark = Benchmark(**clean, active=False)
    db.add(benchmark)
    db.commit()
    return coerce_benchmark(benchmark)


def list_benchmarks(db: Session) -> list[BenchmarkRecord]:
    return [coerce_benchmark(row) for row in db.query(Benchmark).order_by(Benchmark.id.asc()).all()]


load_benchmarks = list_benchmarks


def activate_benchmark(db: Session, benchmark_id: int) -> BenchmarkRecord:
    """Make `benchmark_id` the single active benchmark."""
    selected = db.query(Benchmark).filter(Benchmark.id == benchmark_id).first()
    if selected is None:
        raise NotFoundError("Benchmark not found")
    db.query(Benchmark).filter(Benchmark.id != benchmark_id).update(
        {Benchmark.active: False}, synchronize_session=False
    )
    selected.active = True
    db.commit()
    return coerce_benchmark(selected)


def delete_benchmark(db: Session, benchmark_id: int) -> BenchmarkRecord | None:
    """
    Delete a benchmark. When it was the active one, the first remaining
    benchmark is activated and returned.
    """
    benchmark = db.query(Benchmark).filter(Benchmark.id == benchmark_id).first()
    if benchmark is None:
        raise NotFoundError("Benchmark not found")
    was_active = bool(benchmark.active)
    db.delete(benchmark)
    db.flush()

    promoted = None
    if was_active:
        promoted = db.query(Benchmark).order_by(Benchmark.id.asc()).first()
        if promoted is not None:
            promoted.active = True
    db.commit()
    return coerce_benchmark(promoted) if promoted is not None else None


def get_active_benchmark(db: Session) -> BenchmarkRecord | None:
    row = db.query(Benchmark).filter(Benchmark.active.is_(True)).order_by(Benchmark.id.asc()).first()
    if row is None:
        row = db.query(Benchmark).order_by(Benchmark.id.asc()).first()
    return coerce_benchmark(row) if row is not None else None


def ensure_default_benchmark(db: Session) -> None:
    if db.query(Benchmark.id).first() is not None:
        return
    db.add(
        Benchmark(
            name=DEFAULT_BENCHMARK_NAME,
            target_impact=DEFAULT_TARGET_IMPACT,
            urgency_threshold=3,
            tier_weights=dict(DEFAULT_TIER_WEIGHTS),
            active=True,
        )
    )
    db.commit()
    logger.info("Created default benchmark %r", DEFAULT_BENCHMARK_NAME)
