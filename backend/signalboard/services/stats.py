"""
Small statistics helpers shared by the analyzers.

Every helper returns 0 for empty or degenerate input instead of raising or
producing NaN/infinity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Regression:
    slope: float = 0.0
    intercept: float = 0.0


def safe_ratio(numerator: int | float, denominator: int | float) -> float:
    den = float(denominator or 0)
    if den <= 0:
        return 0.0
    return float(numerator or 0) / den


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(sum(values)) / len(values)


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2.0
    return float(ordered[mid])


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if not values:
        return 0.0
    avg = mean(values)
    return math.sqrt(mean([(value - avg) ** 2 for value in values]))


def linear_regression(xs: Sequence[float], ys: Sequence[float]) -> Regression:
    """Ordinary least squares fit of ys against xs."""
    n = min(len(xs), len(ys))
    if n < 2:
        return Regression()
    xs = list(xs[:n])
    ys = list(ys[:n])

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_xx = sum(x * x for x in xs)

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return Regression()
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return Regression(slope=slope, intercept=intercept)


def relative_change(current: float, previous: float) -> float:
    """(current - previous) / previous, defined as 0 when previous is 0."""
    if not previous:
        return 0.0
    return (current - previous) / previous


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (2.5 -> 3), unlike built-in round()."""
    return int(math.floor(float(value) + 0.5))
