from __future__ import annotations

from datetime import datetime, timedelta, timezone

from signalboard.core.time import (
    day_key,
    day_keys_ending,
    ensure_utc,
    in_last_n_days,
    resolve_timezone,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_day_key_is_stable_within_a_calendar_day():
    morning = datetime(2026, 3, 15, 0, 5, tzinfo=timezone.utc)
    night = datetime(2026, 3, 15, 23, 55, tzinfo=timezone.utc)
    assert day_key(morning) == day_key(night) == "2026-03-15"


def test_day_key_uses_reporting_timezone():
    instant = datetime(2026, 3, 15, 2, 0, tzinfo=timezone.utc)
    new_york = resolve_timezone("America/New_York")
    assert day_key(instant) == "2026-03-15"
    assert day_key(instant, new_york) == "2026-03-14"


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2026, 3, 15, 12, 0)
    assert ensure_utc(naive) == NOW
    assert day_key(naive) == "2026-03-15"


def test_in_last_n_days_window_bounds():
    assert in_last_n_days(NOW, 7, now=NOW)
    assert in_last_n_days(NOW - timedelta(days=7), 7, now=NOW)
    assert not in_last_n_days(NOW - timedelta(days=7, seconds=1), 7, now=NOW)
    # Small forward tolerance for clock skew.
    assert in_last_n_days(NOW + timedelta(milliseconds=500), 7, now=NOW)
    assert not in_last_n_days(NOW + timedelta(seconds=2), 7, now=NOW)


def test_day_keys_ending_is_contiguous_and_ends_today():
    keys = day_keys_ending(NOW, 3)
    assert keys == ["2026-03-13", "2026-03-14", "2026-03-15"]
