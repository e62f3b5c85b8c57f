from __future__ import annotations

import math
from datetime import date
from typing import Callable, Optional

from src.analytics.normalizer import normalize_records
from src.analytics.sku import aggregate_skus, compare_skus, comparison_window
from src.core.errors import BadRequestError
from src.schemas.sku import ComparisonMode, SkuGroupBy, SkuReport
from src.services.sales_data_service import SalesDataService


class SkuService:
    """Per-SKU drill-down over the cached sales data."""

    def __init__(
        self,
        data_service: SalesDataService,
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self.data_service = data_service
        self.today_provider = today_provider or date.today

    def sku_report(
        self,
        start_date: date,
        end_date: date,
        channel: Optional[str] = None,
        brand: Optional[str] = None,
        sku: Optional[str] = None,
        group_by: SkuGroupBy = "sku",
        compare: Optional[ComparisonMode] = None,
    ) -> SkuReport:
        if end_date < start_date:
            raise BadRequestError("end_date must not be before start_date")
        records, _ = normalize_records(
            self.data_service.load_sales_data(), today=self.today_provider()
        )
        filters = {"channel": channel, "brand": brand, "sku": sku, "group_by": group_by}
        rows = aggregate_skus(records, start_date, end_date, **filters)
        report = SkuReport(
            start_date=start_date,
            end_date=end_date,
            group_by=group_by,
            rows=rows,
            total_revenue=math.fsum(row.revenue for row in rows),
            total_units=math.fsum(row.units for row in rows),
        )
        if compare is None:
            return report

        previous_start, previous_end = comparison_window(start_date, end_date, compare)
        previous_rows = aggregate_skus(records, previous_start, previous_end, **filters)
        report.comparison_start_date = previous_start
        report.comparison_end_date = previous_end
        report.comparison = compare_skus(rows, previous_rows)
        return report
