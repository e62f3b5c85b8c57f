from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.analytics.projections import calculate_run_rate, project_scenarios, ratio
from src.schemas.kpi import AggregatedBucket

TODAY = date(2025, 2, 20)


def _bucket(day: date, revenue: float, channel: str = "Amazon") -> AggregatedBucket:
    return AggregatedBucket(
        date=day,
        brand="LifePro",
        brand_key="lifepro",
        channel=channel,
        channel_key=channel.lower(),
        revenue=revenue,
        count=1,
    )


def test_run_rate_weights_recent_days_more():
    buckets = [
        _bucket(TODAY - timedelta(days=2), 100),
        _bucket(TODAY - timedelta(days=1), 200),
        _bucket(TODAY, 300),
    ]
    assert calculate_run_rate(buckets, TODAY) == pytest.approx(1400 / 6)


def test_run_rate_sums_channels_per_day_and_ignores_old_days():
    buckets = [
        _bucket(TODAY - timedelta(days=14), 10_000),
        _bucket(TODAY - timedelta(days=13), 100),
        _bucket(TODAY, 100, channel="Amazon"),
        _bucket(TODAY, 200, channel="TikTok"),
        _bucket(TODAY + timedelta(days=1), 5_000),
    ]
    assert calculate_run_rate(buckets, TODAY) == pytest.approx((100 + 300 * 2) / 3)


def test_run_rate_without_recent_data_is_zero():
    assert calculate_run_rate([], TODAY) == 0.0


def test_ratio_is_zero_for_empty_denominator():
    assert ratio(10, 0) == 0.0
    assert ratio(10, -5) == 0.0
    assert ratio(10, 4) == 2.5


@pytest.mark.parametrize("run_rate", [0.0, 1.5, 250.0])
@pytest.mark.parametrize("days_remaining", [0, 1, 45])
def test_projection_scenarios_are_ordered(run_rate, days_remaining):
    scenarios = project_scenarios(1000, run_rate, days_remaining, 850, 1000)
    assert scenarios.conservative.value <= scenarios.realistic.value <= scenarios.optimistic.value


def test_projection_percentages_against_both_tiers():
    scenarios = project_scenarios(1000, 100, 10, 1700, 2000)
    assert scenarios.realistic.value == 2000
    assert scenarios.realistic.percent85 == pytest.approx(2000 / 1700)
    assert scenarios.realistic.percent100 == 1.0
    assert scenarios.conservative.value == 1800
    assert scenarios.optimistic.value == 2200


def test_projection_percentages_with_zero_targets():
    scenarios = project_scenarios(1000, 100, 10, 0, 0)
    assert scenarios.optimistic.percent85 == 0.0
    assert scenarios.optimistic.percent100 == 0.0
