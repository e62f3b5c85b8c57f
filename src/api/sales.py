from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_sales_data_service, get_sku_service
from src.models.sales import SalesRecord
from src.schemas.sales import (
    BatchSaveResult,
    CacheStats,
    SalesBatchRequest,
    SalesRecordSummary,
)
from src.schemas.sku import ComparisonMode, SkuGroupBy, SkuReport
from src.services.sales_data_service import SalesDataService, build_source_id
from src.services.sku_service import SkuService
from src.shared.response import Meta, ResponseEnvelope, paginate_list
from src.shared.time import parse_time_window


router = APIRouter(prefix="/sales", tags=["sales"])


def _to_summary(record: SalesRecord) -> SalesRecordSummary:
    revenue = record.revenue
    return SalesRecordSummary(
        id=str(record.id) if record.id is not None else None,
        date=str(record.date)[:10] if record.date is not None else None,
        brand=record.brand_name or record.brand,
        channel=record.channel_name or record.channel,
        revenue=revenue if isinstance(revenue, float) else None,
        source_id=record.source_id,
        sku=record.sku,
    )


def _meta(time_window: str) -> Meta:
    return Meta(
        as_of_date=date.today().isoformat(),
        source="sales_data",
        time_window=time_window,
        calculation_version="v1",
    )


@router.get("")
def list_sales(
    time_window: str = Query(default="90d"),
    brand: Optional[str] = Query(default=None),
    channel: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    service: SalesDataService = Depends(get_sales_data_service),
) -> ResponseEnvelope[List[SalesRecordSummary]]:
    start_date, end_date = parse_time_window(time_window)
    records = service.list_sales(
        start_date=start_date,
        end_date=end_date,
        brand=brand,
        channel=channel,
    )
    records.sort(key=lambda record: str(record.date or ""), reverse=True)
    paged, pagination = paginate_list(records, page, page_size)
    return ResponseEnvelope(
        data=[_to_summary(record) for record in paged],
        pagination=pagination,
        meta=_meta(time_window),
    )


@router.get("/skus")
def sku_performance(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    time_window: str = Query(default="90d", description="Used when start_date/end_date are omitted"),
    channel: Optional[str] = Query(default=None),
    brand: Optional[str] = Query(default=None),
    sku: Optional[str] = Query(default=None),
    group_by: SkuGroupBy = Query(default="sku"),
    compare: Optional[ComparisonMode] = Query(default=None),
    service: SkuService = Depends(get_sku_service),
) -> ResponseEnvelope[SkuReport]:
    if start_date is None or end_date is None:
        window_start, window_end = parse_time_window(time_window, today=service.today_provider())
        start_date = start_date or window_start
        end_date = end_date or window_end
    report = service.sku_report(
        start_date=start_date,
        end_date=end_date,
        channel=channel,
        brand=brand,
        sku=sku,
        group_by=group_by,
        compare=compare,
    )
    return ResponseEnvelope(
        data=report,
        meta=_meta(f"{start_date.isoformat()}..{end_date.isoformat()}"),
    )


@router.post("/batch")
def save_sales_batch(
    request: SalesBatchRequest,
    service: SalesDataService = Depends(get_sales_data_service),
) -> ResponseEnvelope[BatchSaveResult]:
    records = [
        SalesRecord(
            date=item.date.isoformat(),
            brand=item.brand,
            channel=item.channel,
            revenue=item.revenue,
            source_id=item.source_id
            or build_source_id(item.date.isoformat(), item.channel, item.brand, item.sku, index),
            sku=item.sku,
            product_name=item.product_name,
            units=item.units,
        )
        for index, item in enumerate(request.records)
    ]
    result = service.batch_save_sales_data(records, batch_size=request.batch_size)
    return ResponseEnvelope(data=result, meta=_meta("na"))


@router.delete("/cache")
def clear_sales_cache(
    service: SalesDataService = Depends(get_sales_data_service),
) -> ResponseEnvelope[CacheStats]:
    service.clear_cache()
    return ResponseEnvelope(data=service.cache_stats(), meta=_meta("na"))
