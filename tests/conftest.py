from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_kpi_service, get_sales_data_service
from src.core.cache import TtlCache
from src.main import create_app
from src.models.sales import BrandRecord, ChannelRecord, KpiTargetRecord, SalesRecord
from src.repositories.local_sales_repository import LocalSalesRepository
from src.services.kpi_service import KpiService
from src.services.permissions import PermissionResolver
from src.services.sales_data_service import SalesDataService

TODAY = date(2025, 2, 20)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubSalesRepository:
    def __init__(
        self,
        sales: Optional[List[SalesRecord]] = None,
        targets: Optional[List[KpiTargetRecord]] = None,
        brands: Optional[List[str]] = None,
        channels: Optional[List[str]] = None,
    ) -> None:
        self.sales = list(sales or [])
        self.targets = list(targets or [])
        self.brands = list(brands or [])
        self.channels = list(channels or [])
        self.upserted: List[List[SalesRecord]] = []
        self.sales_reads = 0

    def list_sales(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[SalesRecord]:
        _ = start_date, end_date
        self.sales_reads += 1
        return list(self.sales)

    def list_targets(self, year: Optional[int] = None) -> List[KpiTargetRecord]:
        return [record for record in self.targets if year is None or record.year == year]

    def list_brands(self) -> List[BrandRecord]:
        return [BrandRecord(name=name, is_active=True) for name in self.brands]

    def list_channels(self) -> List[ChannelRecord]:
        return [ChannelRecord(name=name, is_active=True) for name in self.channels]

    def upsert_sales(self, records: Sequence[SalesRecord]) -> int:
        self.upserted.append(list(records))
        self.sales.extend(records)
        return len(records)

    def upsert_targets(self, records: Sequence[KpiTargetRecord]) -> int:
        keys = {(record.year, record.brand, record.period, record.channel) for record in records}
        self.targets = [
            record
            for record in self.targets
            if (record.year, record.brand, record.period, record.channel) not in keys
        ]
        self.targets.extend(records)
        return len(records)


def sample_sales() -> List[SalesRecord]:
    rows = [
        ("2025-01-15", "LifePro", "Amazon", 1000),
        ("2025-02-15", "LifePro", "Amazon", 2000),
        ("2025-02-18", "LifePro", "TikTok", 300),
        ("2025-02-18", "PetCove", "Amazon", 400),
        ("2025-02-19", "PetCove", "TikTok", 100),
        ("2024-12-31", "LifePro", "Amazon", 5000),
    ]
    return [
        SalesRecord(id=str(index), date=day, brand=brand, channel=channel, revenue=revenue)
        for index, (day, brand, channel, revenue) in enumerate(rows, start=1)
    ]


def sample_targets() -> List[KpiTargetRecord]:
    rows = [
        ("LifePro", "annual", "Amazon", 3600),
        ("LifePro", "Q1", "Amazon", 900),
        ("LifePro", "Q1", "TikTok", 300),
        ("PetCove", "Q1", "Amazon", 90),
    ]
    return [
        KpiTargetRecord(year=2025, brand=brand, period=period, channel=channel, target_value=value)
        for brand, period, channel, value in rows
    ]


@pytest.fixture()
def stub_repository() -> StubSalesRepository:
    return StubSalesRepository(
        sales=sample_sales(),
        targets=sample_targets(),
        brands=["LifePro", "PetCove"],
        channels=["Amazon", "TikTok"],
    )


@pytest.fixture()
def data_service(stub_repository: StubSalesRepository, tmp_path) -> SalesDataService:
    return SalesDataService(
        repository=stub_repository,
        fallback_repository=LocalSalesRepository(data_dir=tmp_path),
        cache=TtlCache(ttl_seconds=300),
    )


@pytest.fixture()
def kpi_service(data_service: SalesDataService) -> KpiService:
    return KpiService(
        data_service=data_service,
        permission_resolver=PermissionResolver(),
        today_provider=lambda: TODAY,
    )


@pytest.fixture()
def client(data_service: SalesDataService, kpi_service: KpiService) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_sales_data_service] = lambda: data_service
    app.dependency_overrides[get_kpi_service] = lambda: kpi_service
    return TestClient(app)


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()
