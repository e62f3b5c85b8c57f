from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from src.core.cache import TtlCache
from src.core.config import get_settings
from src.repositories.local_sales_repository import LocalSalesRepository
from src.repositories.sales_repository import SalesRepository
from src.services.kpi_service import KpiService
from src.services.permissions import PermissionResolver
from src.services.sales_data_service import SalesDataService
from src.services.sku_service import SkuService


@lru_cache
def get_sales_cache() -> TtlCache:
    return TtlCache(ttl_seconds=get_settings().sales_cache_ttl_seconds)


@lru_cache
def get_sales_repository() -> Optional[SalesRepository]:
    settings = get_settings()
    if not settings.supabase_enabled:
        return None
    return SalesRepository()


@lru_cache
def get_local_sales_repository() -> LocalSalesRepository:
    return LocalSalesRepository()


def get_sales_data_service() -> SalesDataService:
    return SalesDataService(
        repository=get_sales_repository(),
        fallback_repository=get_local_sales_repository(),
        cache=get_sales_cache(),
        batch_size=get_settings().upload_batch_size,
    )


@lru_cache
def get_permission_resolver() -> PermissionResolver:
    return PermissionResolver()


def get_kpi_service() -> KpiService:
    return KpiService(
        data_service=get_sales_data_service(),
        permission_resolver=get_permission_resolver(),
    )


def get_sku_service(
    data_service: SalesDataService = Depends(get_sales_data_service),
) -> SkuService:
    return SkuService(data_service=data_service)
