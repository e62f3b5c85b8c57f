from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.core.config import Settings, get_settings
from src.models.sales import BrandRecord, ChannelRecord, KpiTargetRecord, SalesRecord

logger = logging.getLogger(__name__)

SALES_FILE = "sales_data.json"
TARGETS_FILE = "kpi_targets.json"
BRANDS_FILE = "brands.json"
CHANNELS_FILE = "channels.json"


class LocalSalesRepository:
    """JSON files in a data directory, used when the hosted backend is unavailable."""

    def __init__(
        self, data_dir: Optional[str | Path] = None, settings: Optional[Settings] = None
    ) -> None:
        settings = settings or get_settings()
        self.data_dir = Path(data_dir or settings.local_data_dir)
        self._write_lock = Lock()

    def _read(self, name: str) -> List[Any]:
        path = self.data_dir / name
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            logger.warning("Discarding unreadable local data file %s", path)
            path.unlink(missing_ok=True)
            return []
        return data if isinstance(data, list) else []

    def _write(self, name: str, rows: List[Any]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.data_dir / name
        tmp_path = path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(rows, handle, default=str)
        tmp_path.replace(path)

    def list_sales(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[SalesRecord]:
        records = [
            SalesRecord.model_validate(row)
            for row in self._read(SALES_FILE)
            if isinstance(row, dict)
        ]
        if start_date or end_date:
            records = [
                record
                for record in records
                if _within(str(record.date or "")[:10], start_date, end_date)
            ]
        return records

    def list_targets(self, year: Optional[int] = None) -> List[KpiTargetRecord]:
        records = [KpiTargetRecord.model_validate(row) for row in self._read(TARGETS_FILE)]
        if year is not None:
            records = [record for record in records if record.year == year]
        return records

    def list_brands(self) -> List[BrandRecord]:
        rows = self._read(BRANDS_FILE)
        if rows:
            return [BrandRecord.model_validate(row) for row in rows]
        names = sorted(
            {
                record.brand_name or record.brand
                for record in self.list_sales()
                if record.brand_name or record.brand
            }
        )
        return [BrandRecord(name=name, is_active=True) for name in names]

    def list_channels(self) -> List[ChannelRecord]:
        return [ChannelRecord.model_validate(row) for row in self._read(CHANNELS_FILE)]

    def upsert_sales(self, records: Sequence[SalesRecord]) -> int:
        with self._write_lock:
            existing = self._read(SALES_FILE)
            positions = {
                row.get("source_id"): index
                for index, row in enumerate(existing)
                if isinstance(row, dict) and row.get("source_id")
            }
            for record in records:
                row = record.model_dump(mode="json", exclude_none=True)
                source_id = row.get("source_id")
                if source_id and source_id in positions:
                    existing[positions[source_id]] = row
                    continue
                if source_id:
                    positions[source_id] = len(existing)
                existing.append(row)
            self._write(SALES_FILE, existing)
        return len(records)

    def upsert_targets(self, records: Sequence[KpiTargetRecord]) -> int:
        """Replace targets sharing (year, brand, period, channel); keep the rest."""
        with self._write_lock:
            rows = {
                _target_key(row): row
                for row in self._read(TARGETS_FILE)
                if isinstance(row, dict)
            }
            for record in records:
                row = record.model_dump(mode="json", exclude_none=True)
                rows[_target_key(row)] = row
            self._write(TARGETS_FILE, list(rows.values()))
        return len(records)


def _target_key(row: Dict[str, Any]) -> Tuple[Any, ...]:
    return (row.get("year"), row.get("brand"), row.get("period"), row.get("channel"))


def _within(value: str, start_date: Optional[date], end_date: Optional[date]) -> bool:
    if not value:
        return False
    if start_date and value < start_date.isoformat():
        return False
    if end_date and value > end_date.isoformat():
        return False
    return True
