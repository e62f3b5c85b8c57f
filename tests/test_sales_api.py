from __future__ import annotations

from src.models.sales import SalesRecord


def test_list_sales_paginates_newest_first(client):
    response = client.get("/api/v1/sales?time_window=3650d&page_size=2")
    assert response.status_code == 200
    payload = response.json()
    assert payload["pagination"]["totalItems"] == 6
    assert payload["pagination"]["totalPages"] == 3
    assert [row["date"] for row in payload["data"]] == ["2025-02-19", "2025-02-18"]


def test_list_sales_filters_by_brand_key(client):
    response = client.get("/api/v1/sales?time_window=3650d&brand=petcove")
    payload = response.json()
    assert payload["pagination"]["totalItems"] == 2
    assert {row["brand"] for row in payload["data"]} == {"PetCove"}


def test_invalid_time_window_returns_error_envelope(client):
    response = client.get("/api/v1/sales?time_window=bad")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "bad_request"


def test_batch_upload_canonicalises_channels(client, stub_repository):
    response = client.post(
        "/api/v1/sales/batch",
        json={
            "records": [
                {"date": "2025-02-20", "brand": " LifePro ", "channel": "shopify", "revenue": 10},
                {"date": "2025-02-20", "brand": "PetCove", "channel": "Amazon", "revenue": 5},
            ]
        },
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] == 1
    assert data["allSuccessful"] is True
    assert data["totalRows"] == 2
    saved = stub_repository.upserted[0]
    assert saved[0].channel == "DTC-Shopify"
    assert saved[0].brand == "LifePro"
    assert saved[0].source_id == "20250220|shopify|lifepro|0"


def test_batch_upload_rejects_missing_fields(client):
    response = client.post("/api/v1/sales/batch", json={"records": [{"date": "2025-02-20"}]})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_clear_cache(client, data_service):
    data_service.load_sales_data()
    response = client.delete("/api/v1/sales/cache")
    assert response.status_code == 200
    assert response.json()["data"]["size"] == 0


def test_targets_for_year(client):
    response = client.get("/api/v1/targets/2025")
    assert response.status_code == 200
    years = response.json()["data"]["years"]
    assert years["2025"]["LifePro"]["Q1"] == {"Amazon": 900, "TikTok": 300}
    assert years["2025"]["LifePro"]["annual"] == {"Amazon": 3600}


def test_catalog_endpoints(client):
    assert client.get("/api/v1/brands").json()["data"] == ["LifePro", "PetCove"]
    assert client.get("/api/v1/channels").json()["data"] == ["Amazon", "TikTok"]


def test_saving_targets_refreshes_the_cached_year(client):
    before = client.get("/api/v1/targets/2025").json()["data"]["years"]["2025"]["LifePro"]
    assert before["Q2"] == {}

    response = client.put(
        "/api/v1/targets/2025",
        json={"LifePro": {"Q1": {"Amazon": 1200}, "Q2": {"Retail": 500}}},
    )

    assert response.status_code == 200
    lifepro = response.json()["data"]["years"]["2025"]["LifePro"]
    assert lifepro["Q1"] == {"Amazon": 1200, "TikTok": 300}
    assert lifepro["Q2"] == {"Retail": 500}
    assert lifepro["annual"] == {"Amazon": 3600}


def _add_sku_rows(stub_repository) -> None:
    rows = [
        ("2025-01-05", "Amazon", "LifePro", "LP-1", "Massage Gun", 100, 2),
        ("2025-01-20", "Amazon", "LifePro", "LP-1", "Massage Gun", 150, 3),
        ("2025-02-02", "Amazon", "LifePro", "LP-2", None, 400, 4),
        ("2025-02-03", "TikTok", "LifePro", "LP-1", "Massage Gun", 50, 1),
        ("2024-01-10", "Amazon", "LifePro", "LP-1", "Massage Gun", 80, 2),
    ]
    for day, channel, brand, sku, name, revenue, units in rows:
        stub_repository.sales.append(
            SalesRecord(
                date=day,
                channel=channel,
                brand=brand,
                sku=sku,
                product_name=name,
                revenue=revenue,
                units=units,
            )
        )


def test_sku_performance_for_one_channel(client, stub_repository):
    _add_sku_rows(stub_repository)

    response = client.get(
        "/api/v1/sales/skus?start_date=2025-01-01&end_date=2025-03-31&channel=amazon"
    )

    assert response.status_code == 200
    payload = response.json()
    report = payload["data"]
    assert [(row["sku"], row["revenue"], row["units"]) for row in report["rows"]] == [
        ("LP-2", 400, 4),
        ("LP-1", 250, 5),
    ]
    assert report["rows"][1]["productName"] == "Massage Gun"
    assert report["rows"][1]["averagePrice"] == 50
    assert report["totalRevenue"] == 650
    assert payload["meta"]["timeWindow"] == "2025-01-01..2025-03-31"


def test_sku_performance_by_month_with_year_over_year(client, stub_repository):
    _add_sku_rows(stub_repository)

    response = client.get(
        "/api/v1/sales/skus?start_date=2025-01-01&end_date=2025-01-31"
        "&channel=Amazon&group_by=month&compare=yoy"
    )

    report = response.json()["data"]
    assert [(row["periodDate"], row["sku"], row["recordCount"]) for row in report["rows"]] == [
        ("2025-01-01", "LP-1", 2)
    ]
    assert report["comparisonStartDate"] == "2024-01-01"
    assert report["comparison"] == [
        {
            "sku": "LP-1",
            "revenue": 250,
            "previousRevenue": 80,
            "revenueChange": 170,
            "revenueChangePercent": 212.5,
            "units": 5,
            "previousUnits": 2,
        }
    ]


def test_sku_performance_rejects_unknown_grouping(client):
    response = client.get("/api/v1/sales/skus?group_by=week")
    assert response.status_code == 422


def test_sku_performance_rejects_reversed_dates(client):
    response = client.get("/api/v1/sales/skus?start_date=2025-02-01&end_date=2025-01-01")
    assert response.status_code == 400
