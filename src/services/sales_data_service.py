from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional, Sequence, TypeVar

import httpx

from src.core.cache import TtlCache
from src.models.sales import SalesRecord
from src.repositories.local_sales_repository import LocalSalesRepository
from src.repositories.sales_repository import SalesRepository
from src.schemas.sales import BatchSaveResult, CacheStats
from src.schemas.targets import TargetTable
from src.shared.channels import CHANNELS, canonical_channel, normalize_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

SALES_CACHE_KEY = "sales_data"
TARGETS_CACHE_PREFIX = "targets:"
BRANDS_CACHE_KEY = "brands"
CHANNELS_CACHE_KEY = "channels"
DEFAULT_BATCH_SIZE = 1000


def build_source_id(
    record_date: str, channel: str, brand: str, sku: Optional[str] = None, row: Optional[int] = None
) -> str:
    """Deterministic upsert key so re-uploading the same file replaces its rows."""
    parts = [normalize_key(record_date), normalize_key(channel), normalize_key(brand)]
    if sku:
        parts.append(normalize_key(sku))
    if row is not None:
        parts.append(str(row))
    return "|".join(parts)


class SalesDataService:
    """Sales, target and catalog access with caching and a local fallback store.

    ``repository`` is the hosted backend and may be ``None`` when it is not
    configured; reads that fail with an HTTP error are served from
    ``fallback_repository`` instead.
    """

    def __init__(
        self,
        repository: Optional[SalesRepository],
        fallback_repository: LocalSalesRepository,
        cache: TtlCache,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.repository = repository
        self.fallback_repository = fallback_repository
        self.cache = cache
        self.batch_size = batch_size

    def _read(
        self,
        label: str,
        primary: Callable[[SalesRepository], T],
        fallback: Callable[[LocalSalesRepository], T],
    ) -> T:
        if self.repository is None:
            return fallback(self.fallback_repository)
        try:
            return primary(self.repository)
        except httpx.HTTPError as exc:
            logger.warning("Supabase %s read failed, using local data: %s", label, exc)
            return fallback(self.fallback_repository)

    def load_sales_data(self) -> List[SalesRecord]:
        return self.cache.get_or_load(
            SALES_CACHE_KEY,
            lambda: self._read(
                "sales", lambda repo: repo.list_sales(), lambda repo: repo.list_sales()
            ),
        )

    def list_sales(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        brand: Optional[str] = None,
        channel: Optional[str] = None,
    ) -> List[SalesRecord]:
        brand_key = normalize_key(brand) if brand else None
        channel_key = normalize_key(channel) if channel else None
        start = start_date.isoformat() if start_date else None
        end = end_date.isoformat() if end_date else None
        records: List[SalesRecord] = []
        for record in self.load_sales_data():
            day = str(record.date or "")[:10]
            if start and (not day or day < start):
                continue
            if end and (not day or day > end):
                continue
            if brand_key and normalize_key(record.brand_name or record.brand) != brand_key:
                continue
            if channel_key and normalize_key(record.channel_name or record.channel) != channel_key:
                continue
            records.append(record)
        return records

    def load_targets(self, year: int) -> TargetTable:
        return self.cache.get_or_load(
            f"{TARGETS_CACHE_PREFIX}{year}",
            lambda: TargetTable.from_records(
                self._read(
                    "targets",
                    lambda repo: repo.list_targets(year),
                    lambda repo: repo.list_targets(year),
                )
            ),
        )

    def load_target_years(self, years: Sequence[int]) -> TargetTable:
        merged = TargetTable()
        for year in years:
            merged.years.update(self.load_targets(year).years)
        return merged

    def list_brands(self) -> List[str]:
        def load() -> List[str]:
            records = self._read(
                "brands", lambda repo: repo.list_brands(), lambda repo: repo.list_brands()
            )
            return [record.name for record in records if record.is_active is not False]

        return self.cache.get_or_load(BRANDS_CACHE_KEY, load)

    def list_channels(self) -> List[str]:
        def load() -> List[str]:
            records = self._read(
                "channels", lambda repo: repo.list_channels(), lambda repo: repo.list_channels()
            )
            names = [record.name for record in records if record.is_active is not False]
            return names or list(CHANNELS)

        return self.cache.get_or_load(CHANNELS_CACHE_KEY, load)

    def save_sales_data(self, records: Sequence[SalesRecord]) -> int:
        prepared = [self._prepare(record) for record in records]
        if self.repository is not None:
            saved = self.repository.upsert_sales(prepared)
        else:
            saved = self.fallback_repository.upsert_sales(prepared)
        self.cache.invalidate(SALES_CACHE_KEY)
        self.cache.invalidate(BRANDS_CACHE_KEY)
        return saved

    def save_targets(self, table: TargetTable) -> int:
        records = table.to_records()
        if self.repository is not None:
            saved = self.repository.upsert_targets(records)
        else:
            saved = self.fallback_repository.upsert_targets(records)
        self.cache.invalidate_prefix(TARGETS_CACHE_PREFIX)
        return saved

    def batch_save_sales_data(
        self, records: Sequence[SalesRecord], batch_size: Optional[int] = None
    ) -> BatchSaveResult:
        """Save in batches; a failed batch is recorded and the remaining batches still run."""
        size = batch_size or self.batch_size
        batches = [records[start : start + size] for start in range(0, len(records), size)]
        succeeded = 0
        errors: List[str] = []
        processed_rows = 0
        for number, batch in enumerate(batches, start=1):
            try:
                self.save_sales_data(batch)
                succeeded += 1
            except (httpx.HTTPError, OSError) as exc:
                logger.error("Sales batch %d/%d failed: %s", number, len(batches), exc)
                errors.append(f"Batch {number}: {exc}")
            processed_rows += len(batch)
        return BatchSaveResult(
            success=succeeded,
            failed=len(batches) - succeeded,
            total=len(batches),
            all_successful=succeeded == len(batches),
            processed_rows=processed_rows,
            total_rows=len(records),
            errors=errors,
        )

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> CacheStats:
        self.cache.purge_expired()
        keys = self.cache.keys()
        return CacheStats(size=len(keys), keys=keys, ttl_seconds=self.cache.ttl_seconds)

    @staticmethod
    def _prepare(record: SalesRecord) -> SalesRecord:
        return record.model_copy(
            update={
                "brand": (record.brand or "").strip() or None,
                "channel": canonical_channel(record.channel) or None,
            }
        )
