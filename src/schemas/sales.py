from __future__ import annotations

from datetime import date as calendar_date
from typing import List, Optional

from pydantic import Field

from src.shared.base import BaseSchema


class SalesRecordSummary(BaseSchema):
    id: Optional[str] = None
    date: Optional[str] = None
    brand: Optional[str] = None
    channel: Optional[str] = None
    revenue: Optional[float] = None
    source_id: Optional[str] = None
    sku: Optional[str] = None


class SalesUploadRecord(BaseSchema):
    date: calendar_date
    brand: str = Field(..., min_length=1)
    channel: str = Field(..., min_length=1)
    revenue: float
    source_id: Optional[str] = None
    sku: Optional[str] = None
    product_name: Optional[str] = None
    units: Optional[float] = Field(default=None, ge=0)


class SalesBatchRequest(BaseSchema):
    records: List[SalesUploadRecord]
    batch_size: Optional[int] = Field(default=None, ge=1, le=5000)


class BatchSaveResult(BaseSchema):
    success: int
    failed: int
    total: int
    all_successful: bool
    processed_rows: int
    total_rows: int
    errors: List[str] = Field(default_factory=list)


class CacheStats(BaseSchema):
    size: int
    keys: List[str]
    ttl_seconds: float
