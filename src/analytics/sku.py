from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.analytics.projections import ratio
from src.schemas.kpi import NormalizedRecord
from src.schemas.sku import ComparisonMode, SkuComparison, SkuGroupBy, SkuRow
from src.shared.channels import normalize_key
from src.shared.time import QUARTER_MONTHS, quarter_for_month, shift_years


def sku_period_start(day: date, group_by: SkuGroupBy) -> Optional[date]:
    """Bucket date for a row; ``sku`` grouping folds every date together."""
    if group_by == "date":
        return day
    if group_by == "month":
        return day.replace(day=1)
    if group_by == "quarter":
        return date(day.year, QUARTER_MONTHS[quarter_for_month(day.month)][0], 1)
    return None


def parse_units(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def _matches(value_key: str, wanted: Optional[str]) -> bool:
    return not wanted or value_key == normalize_key(wanted)


def aggregate_skus(
    records: Sequence[NormalizedRecord],
    start_date: date,
    end_date: date,
    *,
    channel: Optional[str] = None,
    brand: Optional[str] = None,
    sku: Optional[str] = None,
    group_by: SkuGroupBy = "sku",
) -> List[SkuRow]:
    """Units and revenue per (period, sku, channel, brand), largest revenue first.

    Records without a SKU are left out.
    """
    grouped: Dict[Tuple[Optional[date], str, str, str], List[NormalizedRecord]] = {}
    for record in records:
        record_sku = str(record.metadata.get("sku") or "").strip()
        if not record_sku or not start_date <= record.date <= end_date:
            continue
        if not (
            _matches(record.channel_key, channel)
            and _matches(record.brand_key, brand)
            and _matches(normalize_key(record_sku), sku)
        ):
            continue
        key = (
            sku_period_start(record.date, group_by),
            normalize_key(record_sku),
            record.channel_key,
            record.brand_key,
        )
        grouped.setdefault(key, []).append(record)

    total_revenue = math.fsum(
        member.revenue for members in grouped.values() for member in members
    )
    rows: List[SkuRow] = []
    for (period_date, _, _, _), members in grouped.items():
        first = members[0]
        revenue = math.fsum(member.revenue for member in members)
        units = math.fsum(parse_units(member.metadata.get("units")) for member in members)
        names = [member.metadata.get("product_name") for member in members]
        product_name = next((name for name in names if name), None)
        rows.append(
            SkuRow(
                period_date=period_date,
                sku=str(first.metadata["sku"]).strip(),
                product_name=product_name,
                brand=first.brand,
                channel=first.channel,
                units=units,
                revenue=revenue,
                record_count=len(members),
                average_price=ratio(revenue, units),
                contribution_percent=ratio(revenue, total_revenue) * 100,
            )
        )
    rows.sort(key=lambda row: (-row.revenue, row.sku, row.period_date or date.min))
    return rows


def comparison_window(start_date: date, end_date: date, mode: ComparisonMode) -> Tuple[date, date]:
    """Same window a year earlier (``yoy``) or the equally long window just before it."""
    if mode == "yoy":
        return shift_years(start_date, -1), shift_years(end_date, -1)
    length = (end_date - start_date).days
    previous_end = start_date - timedelta(days=1)
    return previous_end - timedelta(days=length), previous_end


def _totals_by_sku(rows: Sequence[SkuRow]) -> Dict[str, Tuple[str, float, float]]:
    totals: Dict[str, Tuple[str, float, float]] = {}
    for row in rows:
        sku_key = normalize_key(row.sku)
        name, revenue, units = totals.get(sku_key, (row.sku, 0.0, 0.0))
        totals[sku_key] = (name, revenue + row.revenue, units + row.units)
    return totals


def compare_skus(current: Sequence[SkuRow], previous: Sequence[SkuRow]) -> List[SkuComparison]:
    current_totals = _totals_by_sku(current)
    previous_totals = _totals_by_sku(previous)
    comparisons: List[SkuComparison] = []
    for sku_key in list(current_totals) + [key for key in previous_totals if key not in current_totals]:
        name, revenue, units = current_totals.get(sku_key, (None, 0.0, 0.0))
        previous_name, previous_revenue, previous_units = previous_totals.get(
            sku_key, (None, 0.0, 0.0)
        )
        change = revenue - previous_revenue
        comparisons.append(
            SkuComparison(
                sku=name or previous_name,
                revenue=revenue,
                previous_revenue=previous_revenue,
                revenue_change=change,
                revenue_change_percent=ratio(change, previous_revenue) * 100,
                units=units,
                previous_units=previous_units,
            )
        )
    comparisons.sort(key=lambda item: (-item.revenue, -item.previous_revenue, item.sku))
    return comparisons
