from __future__ import annotations

from datetime import timedelta
import importlib

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from signalboard.core.config import AnalyticsConfig, get_analytics_config
from signalboard.core.database import Base, get_db
from signalboard.core.time import now_utc
from signalboard.services import store

signals_api = importlib.import_module("signalboard.api.signals")
events_api = importlib.import_module("signalboard.api.events")
benchmarks_api = importlib.import_module("signalboard.api.benchmarks")
analytics_api = importlib.import_module("signalboard.api.analytics")


def _build_db_session():
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, future=True)()


def _make_client(db_session, config: AnalyticsConfig | None = None) -> TestClient:
    app = FastAPI()
    app.include_router(signals_api.router, prefix="/api/signals")
    app.include_router(events_api.router, prefix="/api/events")
    app.include_router(benchmarks_api.router, prefix="/api/benchmarks")
    app.include_router(analytics_api.router, prefix="/api/analytics")
    app.dependency_overrides = {
        get_db: lambda: db_session,
        get_analytics_config: lambda: config or AnalyticsConfig(),
    }
    return TestClient(app)


def _seed_signals(db, count: int, *, days: int = 14, **overrides):
    now = now_utc()
    for index in range(count):
        payload = {
            "title": f"Signal {index}",
            "impact": 30 + index % 50,
            "urgency": "medium",
            "category": "feature",
            "tier": "pro",
            "timestamp": (now - timedelta(days=index % days)).isoformat(),
        }
        payload.update(overrides)
        store.record_signal(db, payload)


def test_create_signal_normalizes_and_returns_record():
    db = _build_db_session()

    with _make_client(db) as client:
        response = client.post(
            "/api/signals",
            json={"title": " Dashboard is slow ", "impact": "65", "urgency": 4, "category": "Performance"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["signal"]["title"] == "Dashboard is slow"
    assert body["signal"]["impact"] == 65.0
    assert body["signal"]["urgency"] == "critical"
    assert body["signal"]["category"] == "performance"
    assert body["signal"]["tier"] == "free"


def test_create_signal_accepts_epoch_millisecond_timestamp():
    db = _build_db_session()

    with _make_client(db) as client:
        response = client.post(
            "/api/signals", json={"title": "Late webhook", "impact": 20, "timestamp": 1773576000000}
        )

    assert response.status_code == 200
    assert response.json()["signal"]["timestamp"].startswith("2026-03-15T12:00:00")


def test_create_signal_rejects_invalid_impact():
    db = _build_db_session()

    with _make_client(db) as client:
        response = client.post("/api/signals", json={"title": "No impact", "impact": 0})

    assert response.status_code == 400
    assert response.json()["detail"] == "impact must be greater than 0"


def test_signal_listing_and_deletion():
    db = _build_db_session()
    _seed_signals(db, 3, days=1)

    with _make_client(db) as client:
        listed = client.get("/api/signals", params={"limit": 2})
        assert listed.status_code == 200
        assert len(listed.json()) == 2

        signal_id = listed.json()[0]["id"]
        assert client.delete(f"/api/signals/{signal_id}").json() == {"ok": True}
        assert client.delete(f"/api/signals/{signal_id}").status_code == 404

        cleared = client.delete("/api/signals/today")

    assert cleared.json() == {"ok": True, "removed": 2}


def test_event_tracking_respects_log_limits():
    db = _build_db_session()
    config = AnalyticsConfig(max_stored_events=3, max_displayed_events=2)

    with _make_client(db, config) as client:
        for index in range(4):
            response = client.post("/api/events", json={"type": f"step_{index}", "user_id": "user-1"})
            assert response.status_code == 200
        recent = client.get("/api/events")
        bad = client.post("/api/events", json={"type": "  "})

    assert [event["type"] for event in recent.json()] == ["step_3", "step_2"]
    assert bad.status_code == 400
    assert len(store.load_events(db)) == 3


def test_benchmark_lifecycle():
    db = _build_db_session()
    store.ensure_default_benchmark(db)

    with _make_client(db) as client:
        created = client.post("/api/benchmarks", json={"name": "Stretch", "target_impact": 2000})
        assert created.status_code == 200
        benchmark_id = created.json()["benchmark"]["id"]
        assert created.json()["benchmark"]["active"] is False

        activated = client.post(f"/api/benchmarks/{benchmark_id}/activate")
        assert activated.json()["benchmark"]["active"] is True

        deleted = client.delete(f"/api/benchmarks/{benchmark_id}")
        assert deleted.json()["active"]["name"] == "Q1 Baseline"

        invalid = client.post("/api/benchmarks", json={"name": "Zero", "target_impact": 0})
        missing = client.post("/api/benchmarks/999/activate")

    assert invalid.status_code == 400
    assert missing.status_code == 404


def test_funnel_and_retention_endpoints():
    db = _build_db_session()
    config = AnalyticsConfig(funnel_steps=("app_open", "signal_captured"), retention_days=(1,))
    now = now_utc()
    for user in ("a", "b", "c", "d"):
        store.track_event(db, {"type": "app_open", "user_id": user, "timestamp": (now - timedelta(days=2)).isoformat()}, max_events=100)
    store.track_event(db, {"type": "signal_captured", "user_id": "a", "timestamp": (now - timedelta(days=1)).isoformat()}, max_events=100)

    with _make_client(db, config) as client:
        funnel = client.get("/api/analytics/funnel").json()
        retention = client.get("/api/analytics/retention").json()

    assert [step["users"] for step in funnel["steps"]] == [4, 1]
    assert funnel["overall_conversion"] == 0.25
    assert retention["total_users"] == 4
    assert retention["retention"]["day1"]["retained"] == 1


def test_analytics_views_over_seeded_signals():
    db = _build_db_session()
    _seed_signals(db, 28)

    with _make_client(db) as client:
        series = client.get("/api/analytics/timeseries", params={"days": 7}).json()
        north_star = client.get("/api/analytics/north-star").json()
        forecast = client.get("/api/analytics/forecast").json()
        anomalies = client.get("/api/analytics/anomalies").json()
        weekly = client.get("/api/analytics/weekly").json()
        insights = client.get("/api/analytics/insights").json()
        risks = client.get("/api/analytics/risks").json()

    assert series["days"] == 7
    assert sum(day["signal_count"] for day in series["items"]) == 14
    assert north_star["weekly_active_signals"] == 14
    assert north_star["monthly_active_signals"] == 28
    assert north_star["engagement_streak"] == 14
    assert len(forecast) == 7
    assert {item["trend"] for item in forecast} == {"stable"}
    assert anomalies["count"] == len(anomalies["items"])
    assert len(weekly) == 12
    assert insights[-1]["title"] == "Recommended Action"
    assert risks == []


def test_dashboard_and_export_payloads():
    db = _build_db_session()
    store.ensure_default_benchmark(db)
    _seed_signals(db, 5, days=1, tier="enterprise")
    store.track_event(db, {"type": "app_open", "user_id": "a"}, max_events=100)

    with _make_client(db) as client:
        dashboard = client.get("/api/analytics/dashboard").json()
        export = client.get("/api/analytics/export").json()

    assert set(dashboard) == {
        "generated_at",
        "stats",
        "north_star",
        "timeseries",
        "weekly",
        "anomalies",
        "funnel",
        "retention",
        "forecast",
        "insights",
        "risks",
    }
    assert len(dashboard["timeseries"]) == 30
    # Enterprise weight 3 * impacts 30..34.
    assert dashboard["stats"]["daily_impact"] == 3 * (30 + 31 + 32 + 33 + 34)
    assert dashboard["stats"]["target_impact"] == 1000
    assert dashboard["funnel"]["total_users"] == 1

    assert set(export) == {"exported_at", "version", "events", "signals", "benchmarks", "metrics"}
    assert len(export["signals"]) == 5
    assert len(export["events"]) == 1
    assert export["metrics"]["weekly_active_signals"] == 5


def test_health_endpoint():
    main = importlib.import_module("signalboard.main")
    client = TestClient(main.app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
