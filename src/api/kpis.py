from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_kpi_service
from src.schemas.kpi import KpiResult
from src.schemas.permissions import UserPermissions
from src.services.kpi_service import KpiService
from src.shared.channels import ALL_BRANDS
from src.shared.response import Meta, ResponseEnvelope
from src.shared.time import build_view, period_bounds


router = APIRouter(prefix="/kpis", tags=["kpis"])

KPI_CALCULATION_VERSION = "v1"


@router.get("")
def kpi_summary(
    view: Literal["annual", "quarterly", "monthly", "custom"] = Query(default="monthly"),
    year: Optional[int] = Query(default=None),
    period: Optional[str] = Query(default=None, description="Q1..Q4 for quarterly views"),
    month: Optional[int] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    brand: str = Query(default=ALL_BRANDS),
    role: Optional[str] = Query(default=None),
    brands: List[str] = Query(default=[]),
    channels: List[str] = Query(default=[]),
    service: KpiService = Depends(get_kpi_service),
) -> ResponseEnvelope[KpiResult]:
    selected_view = build_view(
        view,
        year=year,
        period=period,
        month=month,
        start_date=start_date,
        end_date=end_date,
        today=service.today_provider(),
    )
    # Without a role the caller is trusted with the full catalog.
    permissions = (
        UserPermissions(role=role, brands=brands, channels=channels) if role is not None else None
    )
    data = service.get_kpis(selected_view, brand=brand, permissions=permissions)
    start, end = period_bounds(selected_view)
    meta = Meta(
        as_of_date=service.today_provider().isoformat(),
        source="sales_data",
        time_window=f"{start.isoformat()}..{end.isoformat()}",
        calculation_version=KPI_CALCULATION_VERSION,
        data_status="partial" if data.diagnostics.dropped_count else "complete",
    )
    return ResponseEnvelope(data=data, meta=meta)
