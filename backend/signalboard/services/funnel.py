"""
Conversion funnel over tracked events.

Steps are measured independently: a step's count is the number of distinct
users with at least one event of that type. A user does not need earlier
steps to count at a later one (set-membership funnel, not ordered paths).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from signalboard.services.records import EventRecord
from signalboard.services.stats import safe_ratio


@dataclass(frozen=True)
class FunnelStep:
    step: str
    users: int
    conversion_rate: float
    dropoff_count: int


@dataclass(frozen=True)
class FunnelResult:
    steps: list[FunnelStep]
    overall_conversion: float
    total_users: int


def compute_funnel(steps: Sequence[str], events: Iterable[EventRecord]) -> FunnelResult:
    step_names = list(steps)
    users_by_step: dict[str, set[str]] = {step: set() for step in step_names}
    for event in events:
        members = users_by_step.get(event.type)
        if members is not None:
            members.add(event.user_id)

    results: list[FunnelStep] = []
    previous_count = 0
    for index, step in enumerate(step_names):
        count = len(users_by_step[step])
        if index == 0:
            conversion_rate = 1.0
            dropoff = 0
        else:
            conversion_rate = safe_ratio(count, previous_count)
            dropoff = previous_count - count
        results.append(
            FunnelStep(step=step, users=count, conversion_rate=conversion_rate, dropoff_count=dropoff)
        )
        previous_count = count

    first_users = results[0].users if results else 0
    last_users = results[-1].users if results else 0
    return FunnelResult(
        steps=results,
        overall_conversion=safe_ratio(last_users, first_users),
        total_users=first_users,
    )
