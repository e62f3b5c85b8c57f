from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from src.schemas.kpi import (
    AnnualView,
    CustomRangeView,
    MonthlyView,
    NormalizedRecord,
    QuarterlyView,
    View,
    ViewSelector,
)
from src.shared.channels import is_company_total, key_set, normalize_key
from src.shared.time import QUARTER_MONTHS


def in_period(record_date: Optional[date], view: View) -> bool:
    if record_date is None:
        return False
    if isinstance(view, AnnualView):
        return record_date.year == view.year
    if isinstance(view, QuarterlyView):
        return record_date.year == view.year and record_date.month in QUARTER_MONTHS[view.quarter]
    if isinstance(view, MonthlyView):
        return record_date.year == view.year and record_date.month == view.month
    if isinstance(view, CustomRangeView):
        return view.start_date <= record_date <= view.end_date
    return False


def filter_by_permissions(
    records: Iterable[NormalizedRecord], selector: ViewSelector
) -> List[NormalizedRecord]:
    filtered = list(records)
    if not selector.brands_unrestricted:
        brand_keys = key_set(selector.available_brands)
        filtered = [record for record in filtered if record.brand_key in brand_keys]
    if not selector.channels_unrestricted:
        channel_keys = key_set(selector.available_channels)
        filtered = [record for record in filtered if record.channel_key in channel_keys]
    return filtered


def filter_by_brand(records: Iterable[NormalizedRecord], brand: str) -> List[NormalizedRecord]:
    if is_company_total(brand):
        return list(records)
    brand_key = normalize_key(brand)
    return [record for record in records if record.brand_key == brand_key]


def filter_by_period(records: Iterable[NormalizedRecord], view: View) -> List[NormalizedRecord]:
    return [record for record in records if in_period(getattr(record, "date", None), view)]


def filter_records(
    records: Iterable[NormalizedRecord], selector: ViewSelector
) -> List[NormalizedRecord]:
    permitted = filter_by_permissions(records, selector)
    selected = filter_by_brand(permitted, selector.brand)
    return filter_by_period(selected, selector.view)
