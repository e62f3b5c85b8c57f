from __future__ import annotations

from datetime import date as calendar_date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class SalesRecord(BaseModel):
    """One row of ``sales_data`` as stored; values are kept loose for validation."""

    model_config = ConfigDict(extra="allow")

    id: Optional[Union[int, str]] = None
    date: Optional[Union[calendar_date, str]] = None
    brand: Optional[str] = None
    brand_name: Optional[str] = None
    channel: Optional[str] = None
    channel_name: Optional[str] = None
    revenue: Optional[Union[float, str]] = None
    source_id: Optional[str] = None
    sku: Optional[str] = None
    product_name: Optional[str] = None
    units: Optional[Union[float, str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class KpiTargetRecord(BaseModel):
    id: Optional[Union[int, str]] = None
    year: int
    brand: str
    period: str
    channel: str
    target_value: float = 0.0


class BrandRecord(BaseModel):
    id: Optional[Union[int, str]] = None
    name: str
    is_active: Optional[bool] = None


class ChannelRecord(BaseModel):
    id: Optional[Union[int, str]] = None
    name: str
    is_active: Optional[bool] = None
