from __future__ import annotations

from datetime import date as calendar_date
from typing import List, Literal, Optional

from pydantic import Field

from src.shared.base import BaseSchema

SkuGroupBy = Literal["sku", "date", "month", "quarter"]
ComparisonMode = Literal["yoy", "previous"]


class SkuRow(BaseSchema):
    period_date: Optional[calendar_date] = None
    sku: str
    product_name: Optional[str] = None
    brand: str
    channel: str
    units: float
    revenue: float
    record_count: int
    average_price: float
    contribution_percent: float


class SkuComparison(BaseSchema):
    sku: str
    revenue: float
    previous_revenue: float
    revenue_change: float
    revenue_change_percent: float
    units: float
    previous_units: float


class SkuReport(BaseSchema):
    start_date: calendar_date
    end_date: calendar_date
    group_by: SkuGroupBy
    rows: List[SkuRow] = Field(default_factory=list)
    total_revenue: float = 0.0
    total_units: float = 0.0
    comparison_start_date: Optional[calendar_date] = None
    comparison_end_date: Optional[calendar_date] = None
    comparison: List[SkuComparison] = Field(default_factory=list)
