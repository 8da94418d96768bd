from __future__ import annotations

from datetime import datetime, timedelta, timezone

from signalboard.services.insights import detect_risks, generate_insights
from signalboard.services.records import SignalRecord
from signalboard.services.timeseries import compute_daily_time_series

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _signal(index: int, days_ago: int, **overrides) -> SignalRecord:
    payload = {
        "id": str(index),
        "title": f"Signal {index}",
        "impact": 30.0,
        "urgency": "low",
        "source": "github",
        "category": "feature",
        "tier": "pro",
        "context": "",
        "timestamp": NOW - timedelta(days=days_ago, minutes=30),
    }
    payload.update(overrides)
    return SignalRecord(**payload)


def _series(signals):
    return compute_daily_time_series(signals, 30, now=NOW)


def _titles(insights):
    return [insight.title for insight in insights]


def test_empty_log_gets_a_getting_started_hint():
    insights = generate_insights(_series([]))
    assert _titles(insights) == ["Getting Started"]
    assert insights[0].type == "info"


def test_stable_flow_with_heavy_bug_share():
    signals = [_signal(n, days_ago=n % 14, category="bug") for n in range(28)]

    insights = generate_insights(_series(signals))

    assert _titles(insights) == ["Stable Signal Flow", "High Bug Signal Ratio", "Recommended Action"]
    assert insights[1].message.startswith("100% of recent signals")


def test_volume_spike_insight_score_is_capped():
    previous = [_signal(n, days_ago=7 + n % 7) for n in range(14)]
    recent = [_signal(100 + n, days_ago=n % 7) for n in range(28)]

    spike = generate_insights(_series(previous + recent))[0]

    assert spike.title == "Signal Volume Spike"
    assert spike.type == "alert"
    assert spike.score == 100
    assert "increased 100%" in spike.message


def test_volume_decline_and_enterprise_share():
    previous = [_signal(n, days_ago=7 + n % 7, tier="enterprise") for n in range(70)]
    recent = [_signal(100 + n, days_ago=n % 7, tier="enterprise") for n in range(14)]

    titles = _titles(generate_insights(_series(previous + recent)))

    assert titles[0] == "Signal Volume Declining"
    assert "High Enterprise Signal Volume" in titles


def test_critical_rate_and_rising_urgency():
    urgencies = ["low", "low", "medium", "medium", "high", "critical", "critical"]
    signals = [_signal(n, days_ago=7 + n % 7) for n in range(7)]
    # Oldest recent day (6 days ago) gets the lowest urgency, today the highest.
    signals += [
        _signal(200 + offset, days_ago=6 - offset, urgency=urgency)
        for offset, urgency in enumerate(urgencies)
    ]

    titles = _titles(generate_insights(_series(signals)))

    assert "High Critical Signal Rate" in titles
    assert "Rising Signal Urgency" in titles


def test_risks_need_a_minimum_log_size():
    signals = [_signal(n, days_ago=0, tier="enterprise", urgency="critical", category="bug") for n in range(4)]
    assert detect_risks(signals, _series(signals), now=NOW) == []


def test_enterprise_churn_and_reliability_risks():
    signals = [
        _signal(n, days_ago=n % 3, tier="enterprise", urgency="critical", category="bug") for n in range(5)
    ]
    # Outside the last week; ignored by both checks.
    signals += [_signal(50 + n, days_ago=20, tier="enterprise", urgency="high", category="bug") for n in range(5)]

    risks = {risk.type: risk for risk in detect_risks(signals, _series(signals), now=NOW)}

    assert set(risks) == {"churn", "reliability"}
    assert risks["churn"].affected_count == 5
    assert risks["churn"].severity == "high"
    assert risks["reliability"].affected_count == 5


def test_high_velocity_risk():
    signals = [_signal(n, days_ago=n % 7, tier="free") for n in range(7 * 16)]

    risks = detect_risks(signals, _series(signals), now=NOW)

    assert [risk.type for risk in risks] == ["velocity"]
    assert risks[0].severity == "medium"
    assert risks[0].affected_count == 112
    assert "Averaging 16 signals per day" in risks[0].description


def test_high_urgency_signals_count_toward_critical_rate():
    signals = [_signal(n, days_ago=0, urgency="high") for n in range(10)]

    insights = generate_insights(_series(signals))
    critical = next(insight for insight in insights if insight.title == "High Critical Signal Rate")

    assert critical.message.startswith("100% of recent signals are marked as high urgency or critical")


def test_old_signals_outside_the_series_are_not_an_empty_log():
    signals = [_signal(n, days_ago=60) for n in range(5)]
    series = _series(signals)

    assert _titles(generate_insights(series)) == ["Getting Started"]
    assert _titles(generate_insights(series, total_signals=len(signals))) == [
        "Stable Signal Flow",
        "Recommended Action",
    ]
