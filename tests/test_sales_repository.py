from __future__ import annotations

import json
from datetime import date

import httpx

from src.core.config import Settings
from src.core.supabase import SupabaseClient
from src.models.sales import KpiTargetRecord, SalesRecord
from src.repositories.sales_repository import SalesRepository

ROWS = [
    {
        "id": 1,
        "date": "2025-02-03T00:00:00+00:00",
        "brand": "LifePro",
        "channel": "Amazon",
        "revenue": "12.50",
    },
    {"id": 2, "date": "2025-02-02", "brand": "LifePro", "channel": "TikTok", "revenue": 4},
    {"id": 3, "date": "2025-02-01", "brand": "PetCove", "channel": "Amazon", "revenue": None},
]


def _repository(handler) -> SalesRepository:
    settings = Settings(
        SUPABASE_URL="https://example.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-key",
        SUPABASE_PAGE_SIZE=2,
    )
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return SalesRepository(client=SupabaseClient(settings=settings, http_client=http_client))


def test_list_sales_pages_through_the_table_and_cleans_rows():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        return httpx.Response(200, json=ROWS[offset : offset + limit])

    records = _repository(handler).list_sales(date(2025, 1, 1), date(2025, 2, 28))

    assert len(requests) == 2
    assert requests[0].url.path == "/rest/v1/sales_data"
    assert requests[0].url.params.get_list("date") == ["gte.2025-01-01", "lte.2025-02-28"]
    assert requests[0].url.params["order"] == "date.desc"
    assert requests[0].headers["apikey"] == "service-key"
    assert [str(record.date) for record in records] == ["2025-02-03", "2025-02-02", "2025-02-01"]
    assert records[0].revenue == 12.5


def test_upsert_sales_merges_on_source_id():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(201, json=json.loads(request.content))

    saved = _repository(handler).upsert_sales(
        [SalesRecord(date="2025-02-01", brand="LifePro", channel="Amazon", revenue=5.0, source_id="x")]
    )

    request = captured["request"]
    assert saved == 1
    assert request.method == "POST"
    assert request.url.params["on_conflict"] == "source_id"
    assert "resolution=merge-duplicates" in request.headers["prefer"]
    assert json.loads(request.content) == [
        {"date": "2025-02-01", "brand": "LifePro", "channel": "Amazon", "revenue": 5.0, "source_id": "x"}
    ]


def test_upsert_of_nothing_skips_the_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert _repository(handler).upsert_sales([]) == 0


def test_upsert_targets_conflicts_on_natural_key():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(201, json=json.loads(request.content))

    saved = _repository(handler).upsert_targets(
        [KpiTargetRecord(id=7, year=2025, brand="LifePro", period="Q1", channel="Amazon", target_value=900)]
    )

    request = captured["request"]
    assert saved == 1
    assert request.url.path == "/rest/v1/kpi_targets"
    assert request.url.params["on_conflict"] == "year,brand,period,channel"
    assert json.loads(request.content) == [
        {"year": 2025, "brand": "LifePro", "period": "Q1", "channel": "Amazon", "target_value": 900.0}
    ]
