from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from counterdesk.main import create_app
from counterdesk.storage.database import get_db


@pytest.fixture
async def client(session_factory):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def test_ready(client):
    res = await client.get("/api/ready")
    assert res.status_code == 200
    assert res.json()["message"] == "ready"


async def test_product_create_get_and_missing(client):
    res = await client.post(
        "/api/v1/products/create",
        json={"name": "Coxinha", "price": "7.50", "category": "snacks"},
    )
    assert res.status_code == 201
    product_id = res.json()["id"]

    res = await client.get(f"/api/v1/products/by-id/{product_id}")
    assert res.status_code == 200
    assert Decimal(str(res.json()["price"])) == Decimal("7.50")

    res = await client.get("/api/v1/products/by-id/9999")
    assert res.status_code == 404


async def test_product_page_envelope(client, catalog):
    res = await client.get("/api/v1/products/page", params={"page": 2, "limit": 5})
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 12
    assert body["total_pages"] == 3
    assert len(body["items"]) == 5


async def test_bad_sort_maps_to_400(client):
    res = await client.get("/api/v1/products/page", params={"sort_by": "bogus"})
    assert res.status_code == 400
    body = res.json()
    assert body["error"] == "ValidationError"
    assert body["details"]["field"] == "sort_by"


async def test_update_missing_product_maps_to_404(client):
    res = await client.patch("/api/v1/products/by-id/9999", json={"name": "Ghost"})
    assert res.status_code == 404
    assert res.json()["error"] == "NotFoundError"


async def test_delete_product(client, catalog):
    res = await client.delete(f"/api/v1/products/by-id/{catalog['Lemonade']}")
    assert res.status_code == 204
    res = await client.delete(f"/api/v1/products/by-id/{catalog['Lemonade']}")
    assert res.status_code == 404


async def test_delete_sold_product_maps_to_409(client, shop):
    res = await client.post(
        "/api/v1/sales/create",
        json={"payment_method": "cash", "items": [{"product_id": shop["burger"], "quantity": 1}]},
    )
    assert res.status_code == 201
    sale_id = res.json()["id"]

    res = await client.delete(f"/api/v1/products/by-id/{shop['burger']}")
    assert res.status_code == 409
    assert res.json()["error"] == "ConflictError"

    res = await client.get(f"/api/v1/sales/by-id/{sale_id}")
    assert res.status_code == 200
    assert res.json()["items"][0]["product_name"] == "Burger"


async def test_sale_create_and_status_flow(client, shop):
    res = await client.post(
        "/api/v1/sales/create",
        json={
            "payment_method": "cash",
            "items": [
                {"product_id": shop["burger"], "quantity": 2, "unit_price": "10.00"},
                {"product_id": shop["soda"], "quantity": 1},
            ],
        },
    )
    assert res.status_code == 201
    sale = res.json()
    assert Decimal(str(sale["total"])) == Decimal("25.00")
    assert sale["status"] == "pending"

    res = await client.patch(f"/api/v1/sales/by-id/{sale['id']}/status", json={"status": "completed"})
    assert res.status_code == 200
    assert res.json()["status"] == "completed"

    res = await client.patch(f"/api/v1/sales/by-id/{sale['id']}/status", json={"status": "cancelled"})
    assert res.status_code == 400


async def test_sale_with_unknown_product_maps_to_404(client, shop):
    res = await client.post(
        "/api/v1/sales/create",
        json={"payment_method": "pix", "items": [{"product_id": 9999, "quantity": 1}]},
    )
    assert res.status_code == 404


async def test_get_missing_sale(client, shop):
    res = await client.get("/api/v1/sales/by-id/9999")
    assert res.status_code == 404


async def test_report_with_inverted_range_maps_to_400(client):
    res = await client.get(
        "/api/v1/sales/report", params={"date_from": "2026-10-20", "date_to": "2026-10-19"}
    )
    assert res.status_code == 400


async def test_unknown_period_maps_to_400(client):
    res = await client.get("/api/v1/sales/stats", params={"period": "decade"})
    assert res.status_code == 400


async def test_sales_page(client, history):
    res = await client.get("/api/v1/sales/page", params={"status": "completed"})
    assert res.status_code == 200
    assert res.json()["total"] == 4
