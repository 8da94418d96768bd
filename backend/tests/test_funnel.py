from __future__ import annotations

from datetime import datetime, timezone

import pytest

from signalboard.services.funnel import compute_funnel
from signalboard.services.records import EventRecord

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
STEPS = ("app_open", "view_capture", "signal_captured")


def _events(event_type: str, users: range, repeat: int = 1) -> list[EventRecord]:
    return [
        EventRecord(id=f"{event_type}-{user}-{n}", type=event_type, timestamp=NOW, user_id=f"user-{user}")
        for user in users
        for n in range(repeat)
    ]


def test_funnel_counts_distinct_users_and_conversions():
    events = (
        _events("app_open", range(100), repeat=3)
        + _events("view_capture", range(40), repeat=2)
        + _events("signal_captured", range(10))
    )

    result = compute_funnel(STEPS, events)

    assert [step.users for step in result.steps] == [100, 40, 10]
    assert [step.conversion_rate for step in result.steps] == pytest.approx([1.0, 0.4, 0.25])
    assert [step.dropoff_count for step in result.steps] == [0, 60, 30]
    assert result.overall_conversion == pytest.approx(0.1)
    assert result.total_users == 100


def test_later_steps_do_not_require_earlier_steps():
    # Users 50-59 captured a signal without the intermediate view event.
    events = _events("app_open", range(100)) + _events("signal_captured", range(50, 60))

    result = compute_funnel(STEPS, events)

    assert [step.users for step in result.steps] == [100, 0, 10]
    # Division by an empty previous step is defined as zero.
    assert result.steps[2].conversion_rate == 0
    assert result.steps[2].dropoff_count == -10


def test_empty_first_step_yields_zero_overall_conversion():
    result = compute_funnel(STEPS, _events("view_capture", range(5)))

    assert result.steps[0].users == 0
    assert result.steps[0].conversion_rate == 1.0
    assert result.overall_conversion == 0
    assert result.total_users == 0


def test_events_outside_the_step_list_are_ignored():
    events = _events("app_open", range(3)) + _events("page_view", range(20))
    result = compute_funnel(STEPS, events)
    assert [step.step for step in result.steps] == list(STEPS)
    assert result.steps[0].users == 3


def test_empty_step_list():
    result = compute_funnel([], _events("app_open", range(3)))
    assert result.steps == []
    assert result.overall_conversion == 0
