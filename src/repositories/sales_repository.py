from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.core.supabase import SupabaseClient
from src.models.sales import BrandRecord, ChannelRecord, KpiTargetRecord, SalesRecord

SALES_TABLE = "sales_data"
TARGETS_TABLE = "kpi_targets"
BRANDS_TABLE = "brands"
CHANNELS_TABLE = "channels"


class SalesRepository:
    def __init__(self, client: Optional[SupabaseClient] = None) -> None:
        self.client = client or SupabaseClient()

    def list_sales(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[SalesRecord]:
        filters: List[Tuple[str, str]] = []
        if start_date:
            filters.append(("date", f"gte.{start_date.isoformat()}"))
        if end_date:
            filters.append(("date", f"lte.{end_date.isoformat()}"))
        rows = self.client.select_all(
            table=SALES_TABLE,
            select="*",
            filters=filters,
            order="date.desc",
        )
        return [SalesRecord.model_validate(self._clean_row(row)) for row in rows]

    def list_targets(self, year: Optional[int] = None) -> List[KpiTargetRecord]:
        filters = [("year", f"eq.{year}")] if year is not None else None
        rows = self.client.select_all(
            table=TARGETS_TABLE,
            select="id,year,brand,period,channel,target_value",
            filters=filters,
        )
        return [KpiTargetRecord.model_validate(row) for row in rows]

    def list_brands(self) -> List[BrandRecord]:
        rows = self.client.select_all(
            table=BRANDS_TABLE, select="id,name,is_active", order="name.asc"
        )
        return [BrandRecord.model_validate(row) for row in rows]

    def list_channels(self) -> List[ChannelRecord]:
        rows = self.client.select_all(
            table=CHANNELS_TABLE, select="id,name,is_active", order="name.asc"
        )
        return [ChannelRecord.model_validate(row) for row in rows]

    def upsert_sales(self, records: Sequence[SalesRecord]) -> int:
        if not records:
            return 0
        payload = [record.model_dump(mode="json", exclude_none=True) for record in records]
        created = self.client.insert(
            table=SALES_TABLE,
            payload=payload,
            upsert=True,
            on_conflict="source_id",
        )
        return len(created)

    def upsert_targets(self, records: Sequence[KpiTargetRecord]) -> int:
        if not records:
            return 0
        payload = [
            record.model_dump(mode="json", exclude_none=True, exclude={"id"}) for record in records
        ]
        created = self.client.insert(
            table=TARGETS_TABLE,
            payload=payload,
            upsert=True,
            on_conflict="year,brand,period,channel",
        )
        return len(created)

    @staticmethod
    def _clean_row(row: Dict[str, Any]) -> Dict[str, Any]:
        # PostgREST returns numeric as string and dates may carry a time part.
        cleaned = dict(row)
        revenue = cleaned.get("revenue")
        if isinstance(revenue, str):
            try:
                cleaned["revenue"] = float(revenue)
            except ValueError:
                pass
        value = cleaned.get("date")
        if isinstance(value, str):
            cleaned["date"] = value.split("T")[0]
        return cleaned
