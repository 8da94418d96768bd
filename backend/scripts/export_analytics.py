#!/usr/bin/env python3
"""
Export signals, events, benchmarks and headline metrics as JSON.

Usage:
  cd backend
  ./venv/bin/python scripts/export_analytics.py --out signalboard-analytics.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from signalboard.core.config import AnalyticsConfig, settings
from signalboard.core.database import SessionLocal
from signalboard.services import store
from signalboard.services.dashboard import build_export_payload


def main() -> int:
    parser = argparse.ArgumentParser(description="Export SignalBoard analytics data.")
    parser.add_argument("--out", type=Path, default=None, help="Output file (stdout when omitted)")
    args = parser.parse_args()

    config = AnalyticsConfig.from_settings(settings)
    db = SessionLocal()
    try:
        payload = build_export_payload(
            store.load_signals(db),
            store.load_events(db, limit=config.max_stored_events),
            store.load_benchmarks(db),
            config,
        )
    finally:
        db.close()

    text = json.dumps(payload, indent=2, default=str)
    if args.out is None:
        print(text)
    else:
        args.out.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {len(payload['events'])} events and {len(payload['signals'])} signals to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
