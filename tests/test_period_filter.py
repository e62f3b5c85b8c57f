from __future__ import annotations

from datetime import date

from src.analytics.period_filter import filter_records, in_period
from src.schemas.kpi import (
    AnnualView,
    CustomRangeView,
    MonthlyView,
    NormalizedRecord,
    QuarterlyView,
    ViewSelector,
)
from src.shared.channels import normalize_key


def _record(day: str, brand: str, channel: str, revenue: float = 1.0) -> NormalizedRecord:
    return NormalizedRecord(
        date=date.fromisoformat(day),
        brand=brand,
        brand_key=normalize_key(brand),
        channel=channel,
        channel_key=normalize_key(channel),
        revenue=revenue,
    )


RECORDS = [
    _record("2025-01-31", "LifePro", "Amazon"),
    _record("2025-04-01", "LifePro", "Amazon"),
    _record("2025-02-10", "PetCove", "TikTok"),
    _record("2024-02-10", "LifePro", "Amazon"),
]


def test_in_period_boundaries():
    assert in_period(date(2025, 3, 31), QuarterlyView(year=2025, quarter="Q1"))
    assert not in_period(date(2025, 4, 1), QuarterlyView(year=2025, quarter="Q1"))
    assert in_period(date(2025, 2, 28), MonthlyView(year=2025, month=2))
    assert not in_period(date(2024, 2, 28), MonthlyView(year=2025, month=2))
    assert in_period(date(2025, 12, 31), AnnualView(year=2025))
    custom = CustomRangeView(start_date=date(2025, 1, 10), end_date=date(2025, 1, 20))
    assert in_period(date(2025, 1, 10), custom)
    assert in_period(date(2025, 1, 20), custom)
    assert not in_period(date(2025, 1, 21), custom)
    assert not in_period(None, custom)


def test_unrestricted_company_total_keeps_every_record_in_period():
    selector = ViewSelector(
        view=AnnualView(year=2025),
        brands_unrestricted=True,
        channels_unrestricted=True,
    )
    assert len(filter_records(RECORDS, selector)) == 3


def test_brand_selection_matches_by_key():
    selector = ViewSelector(
        view=AnnualView(year=2025),
        brand="petcove",
        brands_unrestricted=True,
        channels_unrestricted=True,
    )
    assert [record.brand for record in filter_records(RECORDS, selector)] == ["PetCove"]


def test_permissions_contain_the_result():
    selector = ViewSelector(
        view=QuarterlyView(year=2025, quarter="Q1"),
        available_brands=["LifePro"],
        available_channels=["Amazon"],
    )
    filtered = filter_records(RECORDS, selector)
    assert [(record.brand, record.date) for record in filtered] == [("LifePro", date(2025, 1, 31))]


def test_selector_without_permission_lists_is_unrestricted():
    selector = ViewSelector(view=AnnualView(year=2025), brand="All Brands")
    assert selector.brands_unrestricted is True
    assert selector.channels_unrestricted is True
    assert len(filter_records(RECORDS, selector)) == 3


def test_explicitly_restricted_selector_with_no_brands_keeps_nothing():
    selector = ViewSelector(
        view=AnnualView(year=2025),
        available_channels=["Amazon", "TikTok"],
        brands_unrestricted=False,
    )
    assert filter_records(RECORDS, selector) == []
