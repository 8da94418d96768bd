"""
Day-N retention.

A user's cohort anchor is the earliest event they produced. They count as
retained at offset d when they were active on the calendar day anchor + d.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Sequence

from signalboard.core.time import day_key, ensure_utc, local_date
from signalboard.services.records import EventRecord
from signalboard.services.stats import safe_ratio

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetentionRecord:
    day_offset: int
    retained: int
    total: int
    rate: float


@dataclass(frozen=True)
class RetentionResult:
    total_users: int
    retention: dict[str, RetentionRecord]


def compute_retention(
    events: Iterable[EventRecord],
    day_offsets: Sequence[int],
    *,
    tz: tzinfo | None = None,
) -> RetentionResult:
    first_seen: dict[str | None, datetime] = {}
    active_days: dict[str | None, set[str]] = {}

    for event in events:
        moment = ensure_utc(event.timestamp)
        user = event.user_id
        existing = first_seen.get(user)
        if existing is None or moment < existing:
            first_seen[user] = moment
        active_days.setdefault(user, set()).add(day_key(moment, tz))

    total_users = len(first_seen)
    if not total_users:
        logger.debug("Retention: no users in cohort")

    retention: dict[str, RetentionRecord] = {}
    for offset in day_offsets:
        retained = 0
        for user, anchor in first_seen.items():
            check_day = day_key(local_date(anchor, tz) + timedelta(days=offset))
            if check_day in active_days.get(user, ()):
                retained += 1
        retention[f"day{offset}"] = RetentionRecord(
            day_offset=int(offset),
            retained=retained,
            total=total_users,
            rate=safe_ratio(retained, total_users),
        )
    return RetentionResult(total_users=total_users, retention=retention)

