from __future__ import annotations

from datetime import date
from typing import Dict, List

from fastapi import APIRouter, Body, Depends, Path

from src.api.dependencies import get_sales_data_service
from src.schemas.targets import BrandTargets, TargetTable
from src.services.sales_data_service import SalesDataService
from src.shared.response import Meta, ResponseEnvelope


router = APIRouter(tags=["targets"])


def _meta(time_window: str) -> Meta:
    return Meta(
        as_of_date=date.today().isoformat(),
        source="kpi_targets",
        time_window=time_window,
        calculation_version="v1",
    )


@router.get("/targets/{year}")
def targets_for_year(
    year: int = Path(..., ge=1970, le=2999),
    service: SalesDataService = Depends(get_sales_data_service),
) -> ResponseEnvelope[TargetTable]:
    return ResponseEnvelope(data=service.load_targets(year), meta=_meta(str(year)))


@router.put("/targets/{year}")
def save_targets_for_year(
    year: int = Path(..., ge=1970, le=2999),
    brands: Dict[str, BrandTargets] = Body(...),
    service: SalesDataService = Depends(get_sales_data_service),
) -> ResponseEnvelope[TargetTable]:
    """Upsert one year's targets, keyed by brand then period bucket then channel."""
    service.save_targets(TargetTable(years={year: brands}))
    return ResponseEnvelope(data=service.load_targets(year), meta=_meta(str(year)))


@router.get("/brands")
def list_brands(
    service: SalesDataService = Depends(get_sales_data_service),
) -> ResponseEnvelope[List[str]]:
    return ResponseEnvelope(data=service.list_brands(), meta=_meta("na"))


@router.get("/channels")
def list_channels(
    service: SalesDataService = Depends(get_sales_data_service),
) -> ResponseEnvelope[List[str]]:
    return ResponseEnvelope(data=service.list_channels(), meta=_meta("na"))
