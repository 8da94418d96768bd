from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from signalboard.core.database import Base
from signalboard.models.models import AnalyticsEvent, Benchmark, Signal
from signalboard.services import store

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _build_db_session():
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, future=True)()


def _signal_payload(title: str, when: datetime, **overrides) -> dict:
    payload = {
        "title": title,
        "impact": 40,
        "urgency": "medium",
        "source": "support",
        "category": "bug",
        "tier": "pro",
        "timestamp": when.isoformat(),
    }
    payload.update(overrides)
    return payload


def test_record_signal_round_trips_as_aware_utc():
    db = _build_db_session()

    saved = store.record_signal(db, _signal_payload("Export times out", NOW, tier="Enterprise"))
    loaded = store.load_signals(db)

    assert saved.id
    assert saved.tier == "enterprise"
    assert len(loaded) == 1
    assert loaded[0].timestamp == NOW
    assert loaded[0].timestamp.tzinfo is not None


def test_record_signal_rejects_invalid_payload_without_writing():
    db = _build_db_session()

    with pytest.raises(ValueError):
        store.record_signal(db, {"title": "", "impact": 20})

    assert db.query(Signal).count() == 0


def test_list_signals_is_newest_first_and_filters_category():
    db = _build_db_session()
    store.record_signal(db, _signal_payload("Old bug", NOW - timedelta(days=2)))
    store.record_signal(db, _signal_payload("New feature", NOW, category="feature"))
    store.record_signal(db, _signal_payload("New bug", NOW - timedelta(hours=1)))

    assert [s.title for s in store.list_signals(db)] == ["New feature", "New bug", "Old bug"]
    assert [s.title for s in store.list_signals(db, category="BUG")] == ["New bug", "Old bug"]
    assert [s.title for s in store.list_signals(db, limit=1)] == ["New feature"]


def test_delete_signal():
    db = _build_db_session()
    saved = store.record_signal(db, _signal_payload("Broken link", NOW))

    store.delete_signal(db, int(saved.id))

    assert store.load_signals(db) == []
    with pytest.raises(store.NotFoundError):
        store.delete_signal(db, int(saved.id))


def test_clear_signals_for_day_only_removes_today():
    db = _build_db_session()
    store.record_signal(db, _signal_payload("Morning", NOW.replace(hour=0, minute=1)))
    store.record_signal(db, _signal_payload("Evening", NOW.replace(hour=23, minute=59)))
    store.record_signal(db, _signal_payload("Yesterday", NOW - timedelta(days=1)))
    store.record_signal(db, _signal_payload("Tomorrow", NOW + timedelta(days=1)))

    removed = store.clear_signals_for_day(db, now=NOW)

    assert removed == 2
    assert sorted(s.title for s in store.load_signals(db)) == ["Tomorrow", "Yesterday"]


def test_track_event_trims_oldest_events_first():
    db = _build_db_session()
    for index in range(5):
        store.track_event(
            db,
            {"type": f"step_{index}", "user_id": "user-1", "timestamp": NOW.isoformat()},
            max_events=3,
        )

    assert db.query(AnalyticsEvent).count() == 3
    assert [event.type for event in store.load_events(db)] == ["step_2", "step_3", "step_4"]
    assert [event.type for event in store.list_events(db, limit=2)] == ["step_4", "step_3"]
    assert [event.type for event in store.load_events(db, limit=2)] == ["step_3", "step_4"]


def test_track_event_requires_type():
    db = _build_db_session()
    with pytest.raises(ValueError, match="event type is required"):
        store.track_event(db, {"user_id": "user-1"}, max_events=10)


def test_ensure_default_benchmark_is_idempotent():
    db = _build_db_session()

    store.ensure_default_benchmark(db)
    store.ensure_default_benchmark(db)

    benchmarks = store.list_benchmarks(db)
    assert len(benchmarks) == 1
    assert benchmarks[0].name == "Q1 Baseline"
    assert benchmarks[0].target_impact == 1000
    assert benchmarks[0].active is True
    assert benchmarks[0].weight_for("enterprise") == 3.0


def test_activate_benchmark_keeps_a_single_active():
    db = _build_db_session()
    store.ensure_default_benchmark(db)
    stretch = store.create_benchmark(db, {"name": "Stretch", "target_impact": 2000})

    assert stretch.active is False
    store.activate_benchmark(db, int(stretch.id))

    active = [b.name for b in store.list_benchmarks(db) if b.active]
    assert active == ["Stretch"]
    assert store.get_active_benchmark(db).name == "Stretch"

    with pytest.raises(store.NotFoundError):
        store.activate_benchmark(db, 999)


def test_deleting_active_benchmark_promotes_first_remaining():
    db = _build_db_session()
    store.ensure_default_benchmark(db)
    second = store.create_benchmark(db, {"name": "Second", "target_impact": 500})
    third = store.create_benchmark(db, {"name": "Third", "target_impact": 800})
    store.activate_benchmark(db, int(third.id))

    promoted = store.delete_benchmark(db, int(third.id))

    assert promoted is not None
    assert promoted.name == "Q1 Baseline"
    assert promoted.active is True
    # Deleting an inactive benchmark promotes nothing.
    assert store.delete_benchmark(db, int(second.id)) is None
    assert db.query(Benchmark).count() == 1


def test_get_active_benchmark_falls_back_to_first():
    db = _build_db_session()
    assert store.get_active_benchmark(db) is None
    store.create_benchmark(db, {"name": "Inactive", "target_impact": 100})
    assert store.get_active_benchmark(db).name == "Inactive"
