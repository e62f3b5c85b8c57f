from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable

from src.schemas.kpi import AggregatedBucket, ProjectionScenario, ProjectionScenarios

RUN_RATE_WINDOW_DAYS = 14
CONSERVATIVE_MULTIPLIER = 0.8
REALISTIC_MULTIPLIER = 1.0
OPTIMISTIC_MULTIPLIER = 1.2


def daily_revenue(
    buckets: Iterable[AggregatedBucket], start: date, end: date
) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for bucket in buckets:
        if start <= bucket.date <= end:
            totals[bucket.date] += bucket.revenue
    return dict(totals)


def calculate_run_rate(
    buckets: Iterable[AggregatedBucket],
    today: date,
    window_days: int = RUN_RATE_WINDOW_DAYS,
) -> float:
    """Linearly recency-weighted daily average over the trailing window ending today.

    The oldest day with data gets weight 1, the next weight 2 and so on.
    """
    window_start = today - timedelta(days=window_days - 1)
    totals = daily_revenue(buckets, window_start, today)
    weighted_sum = 0.0
    total_weight = 0
    for weight, day in enumerate(sorted(totals), start=1):
        weighted_sum += totals[day] * weight
        total_weight += weight
    return weighted_sum / total_weight if total_weight else 0.0


def ratio(value: float, denominator: float) -> float:
    return value / denominator if denominator > 0 else 0.0


def _scenario(value: float, total_target85: float, total_target100: float) -> ProjectionScenario:
    return ProjectionScenario(
        value=value,
        percent85=ratio(value, total_target85),
        percent100=ratio(value, total_target100),
    )


def project_scenarios(
    total_revenue: float,
    run_rate: float,
    days_remaining: int,
    total_target85: float,
    total_target100: float,
) -> ProjectionScenarios:
    def projected(multiplier: float) -> float:
        return total_revenue + run_rate * multiplier * days_remaining

    return ProjectionScenarios(
        conservative=_scenario(projected(CONSERVATIVE_MULTIPLIER), total_target85, total_target100),
        realistic=_scenario(projected(REALISTIC_MULTIPLIER), total_target85, total_target100),
        optimistic=_scenario(projected(OPTIMISTIC_MULTIPLIER), total_target85, total_target100),
    )
