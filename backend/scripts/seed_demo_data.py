#!/usr/bin/env python3
"""
Seed the database with realistic demo signals and a funnel event stream.

Usage:
  cd backend
  ./venv/bin/python scripts/seed_demo_data.py --signals 250 --users 100 --days 45
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from signalboard.core.config import AnalyticsConfig, settings
from signalboard.core.database import Base, SessionLocal, engine
from signalboard.core.time import now_utc
from signalboard.services import store
from signalboard.services.records import CATEGORIES, SOURCES, TIERS, URGENCY_LEVELS

logger = logging.getLogger("seed_demo_data")

SIGNAL_TEMPLATES = {
    "bug": [
        ("Workers timeout under high load", 85, "critical"),
        ("KV consistency issues in EU region", 78, "high"),
        ("R2 upload fails for files >100MB", 65, "high"),
        ("Pages deployment speed regression", 55, "medium"),
        ("Dashboard loading spinner stuck", 40, "low"),
    ],
    "feature": [
        ("TypeScript bindings for Workers KV", 72, "medium"),
        ("Native cron triggers for Workers", 80, "high"),
        ("Bulk upload API for R2", 68, "medium"),
        ("Advanced analytics dashboard", 60, "low"),
        ("Custom domain support for Pages", 75, "medium"),
    ],
    "performance": [
        ("Workers cold start latency in APAC", 82, "critical"),
        ("R2 read throughput degradation", 70, "high"),
        ("Pages build time optimization needed", 58, "medium"),
        ("KV write performance under burst", 65, "medium"),
        ("CDN cache hit ratio declining", 50, "low"),
    ],
    "ux": [
        ("Confusing error messages in Workers console", 55, "medium"),
        ("R2 pricing calculator unclear", 45, "low"),
        ("Pages deployment status ambiguous", 50, "medium"),
        ("Workers logs hard to filter", 60, "medium"),
        ("Onboarding flow too long", 48, "low"),
    ],
    "documentation": [
        ("KV consistency model documentation gap", 62, "medium"),
        ("Workers AI examples outdated", 52, "low"),
        ("R2 migration guide incomplete", 58, "medium"),
        ("Pages custom headers documentation missing", 54, "low"),
        ("Workers bindings API reference unclear", 48, "low"),
    ],
}

# Probability that a user who reached step N-1 also reaches step N.
STEP_CONTINUATION = 0.6


def _random_moment(rng: random.Random, now: datetime, max_days: int) -> datetime:
    return now - timedelta(days=rng.randint(0, max_days), minutes=rng.randint(0, 23 * 60))


def build_signal_payloads(rng: random.Random, *, count: int, days: int, now: datetime) -> list[dict]:
    payloads = []
    for _ in range(count):
        category = rng.choice(CATEGORIES)
        title, impact, urgency = rng.choice(SIGNAL_TEMPLATES[category])
        tier = rng.choice(TIERS)
        payloads.append(
            {
                "title": title,
                "impact": max(1, min(100, impact + rng.randint(-10, 10))),
                "urgency": urgency if rng.random() > 0.7 else rng.choice(URGENCY_LEVELS),
                "source": rng.choice(SOURCES),
                "category": category,
                "tier": tier,
                "context": f"Reported by {tier} customers via demo seed",
                "timestamp": _random_moment(rng, now, days).isoformat(),
            }
        )
    return payloads


def build_event_payloads(
    rng: random.Random, *, users: int, days: int, now: datetime, steps: tuple[str, ...]
) -> list[dict]:
    payloads = []
    for index in range(users):
        user_id = f"demo_user_{index:04d}"
        first_seen = _random_moment(rng, now, days)
        session_id = f"session_{index:04d}"
        for step in steps:
            payloads.append(
                {"type": step, "user_id": user_id, "session_id": session_id, "timestamp": first_seen.isoformat()}
            )
            if rng.random() > STEP_CONTINUATION:
                break
        # Return visits drive the retention cohorts.
        for offset in sorted(rng.sample(range(1, 31), k=rng.randint(0, 6))):
            visit = first_seen + timedelta(days=offset)
            if visit > now:
                break
            payloads.append(
                {"type": "app_open", "user_id": user_id, "session_id": f"{session_id}_{offset}", "timestamp": visit.isoformat()}
            )
    payloads.sort(key=lambda item: item["timestamp"])
    return payloads


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo signals and events.")
    parser.add_argument("--signals", type=int, default=250)
    parser.add_argument("--users", type=int, default=100)
    parser.add_argument("--days", type=int, default=45)
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper()))
    rng = random.Random(args.seed)
    config = AnalyticsConfig.from_settings(settings)
    now = now_utc()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        store.ensure_default_benchmark(db)
        for payload in build_signal_payloads(rng, count=args.signals, days=args.days, now=now):
            store.record_signal(db, payload)
        events = build_event_payloads(rng, users=args.users, days=args.days, now=now, steps=config.funnel_steps)
        for payload in events:
            store.track_event(db, payload, max_events=config.max_stored_events)
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        return 1
    finally:
        db.close()

    logger.info("Seeded %d signals and %d events", args.signals, len(events))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
