from __future__ import annotations

import math
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.schemas.kpi import (
    AnnualView,
    CustomRangeView,
    MonthlyView,
    QuarterlyView,
    ResolvedTargets,
    View,
    ViewSelector,
)
from src.schemas.targets import TargetTable
from src.shared.channels import is_company_total, unique_by_key
from src.shared.time import days_in_month, days_in_quarter, quarter_for_month, view_years

KPI_FLOOR_RATIO = 0.85

# (year, period bucket, weight applied to that bucket's amounts)
TargetSlice = Tuple[int, str, float]


def monthly_share(year: int, month: int) -> float:
    """Fraction of the owning quarter's target that falls in ``month``, by day count."""
    return days_in_month(year, month) / days_in_quarter(year, quarter_for_month(month))


def _months_between(start: date, end: date) -> Iterable[Tuple[int, int]]:
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        month += 1
        if month > 12:
            month = 1
            year += 1


def target_slices(view: View) -> List[TargetSlice]:
    if isinstance(view, AnnualView):
        return [(view.year, "annual", 1.0)]
    if isinstance(view, QuarterlyView):
        return [(view.year, view.quarter, 1.0)]
    if isinstance(view, MonthlyView):
        return [(view.year, quarter_for_month(view.month), monthly_share(view.year, view.month))]
    if isinstance(view, CustomRangeView):
        slices: List[TargetSlice] = []
        for year, month in _months_between(view.start_date, view.end_date):
            month_days = days_in_month(year, month)
            first = max(view.start_date, date(year, month, 1))
            last = min(view.end_date, date(year, month, month_days))
            overlap = (last - first).days + 1
            weight = monthly_share(year, month) * overlap / month_days
            slices.append((year, quarter_for_month(month), weight))
        return slices
    return []


def brands_in_scope(selector: ViewSelector, table: Optional[TargetTable] = None) -> List[str]:
    """Brands whose targets count towards the selection.

    An unrestricted company total with no brand list falls back to every brand
    that has targets in ``table`` for the years the view covers.
    """
    if not is_company_total(selector.brand):
        return [selector.brand]
    candidates = list(selector.available_brands)
    if not candidates and selector.brands_unrestricted and table is not None:
        candidates = table.brand_names(view_years(selector.view))
    return unique_by_key(candidates)


def resolve_targets(
    table: TargetTable,
    view: View,
    brands: Sequence[str],
    channels: Sequence[str],
) -> ResolvedTargets:
    slices = target_slices(view)
    targets100: Dict[str, float] = {channel: 0.0 for channel in unique_by_key(channels)}
    for brand in brands:
        for year, bucket, weight in slices:
            brand_targets = table.brand_targets(year, brand)
            if brand_targets is None:
                continue
            for channel in targets100:
                targets100[channel] += brand_targets.amount(bucket, channel) * weight

    targets85 = {channel: amount * KPI_FLOOR_RATIO for channel, amount in targets100.items()}
    total100 = math.fsum(targets100.values())
    return ResolvedTargets(
        channel_targets100=targets100,
        channel_targets85=targets85,
        total_target100=total100,
        total_target85=total100 * KPI_FLOOR_RATIO,
    )
