"""API tests for stock ledger endpoints."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from httpx import AsyncClient


@pytest.fixture
async def stocked(async_client: AsyncClient) -> AsyncClient:
    """P1 received 20 and issued 8; P2 received 5; P3 never moved."""
    for pid, category, minimum in [
        ("P1", "Exterior", 15),
        ("P2", "Interior", None),
        ("P3", "Exterior", None),
    ]:
        await async_client.post(
            "/api/products",
            json={
                "id": pid,
                "sku": f"SKU-{pid}",
                "name": f"Paint {pid}",
                "category": category,
                "minimum_stock": minimum,
            },
        )

    await async_client.post(
        "/api/transactions",
        json={
            "type": "IN",
            "supplier_id": "SUP-1",
            "items": [
                {"product_id": "P1", "quantity": 20, "unit_cost": 12.5},
                {"product_id": "P2", "quantity": 5, "unit_cost": 30.0},
            ],
        },
    )
    await async_client.post(
        "/api/transactions",
        json={"type": "OUT", "items": [{"product_id": "P1", "quantity": 8, "unit_price": 20.0}]},
    )
    return async_client


class TestCurrentStock:
    async def test_derived_from_latest_movement(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/P1")

        assert response.status_code == 200
        assert response.json() == {"product_id": "P1", "current_stock": 12}

    async def test_no_history_is_zero(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/P3")
        assert response.json()["current_stock"] == 0

    async def test_unknown_product_404(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/GHOST")
        assert response.status_code == 404
        assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"


class TestReports:
    async def test_levels_for_all_products(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/levels")

        levels = {item["product_id"]: item for item in response.json()["items"]}
        assert {pid: level["current_stock"] for pid, level in levels.items()} == {
            "P1": 12,
            "P2": 5,
            "P3": 0,
        }
        assert levels["P1"]["is_low_stock"] is True
        assert levels["P3"]["last_updated"] is None

    async def test_levels_for_selected_products(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/levels", params={"product_ids": ["P2", "P3"]})

        assert sorted(item["product_id"] for item in response.json()["items"]) == ["P2", "P3"]

    async def test_summary(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/summary")

        data = response.json()
        assert data["total_products"] == 3
        assert data["low_stock_count"] == 1
        movements = {item["product_id"]: item["total_movements"] for item in data["items"]}
        assert movements == {"P1": 2, "P2": 1, "P3": 0}

    async def test_summary_filters(self, stocked: AsyncClient):
        non_zero = await stocked.get("/api/stock/summary", params={"include_zero_stock": False})
        low = await stocked.get("/api/stock/summary", params={"only_low_stock": True})
        exterior = await stocked.get("/api/stock/summary", params={"category": "Exterior"})

        assert {i["product_id"] for i in non_zero.json()["items"]} == {"P1", "P2"}
        assert [i["product_id"] for i in low.json()["items"]] == ["P1"]
        assert {i["product_id"] for i in exterior.json()["items"]} == {"P1", "P3"}


class TestStockCard:
    async def test_newest_first_with_verified_balances(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/P1/card")

        assert response.status_code == 200
        data = response.json()
        assert data["current_stock"] == 12
        assert data["total"] == 2
        assert data["product"]["id"] == "P1"
        assert [(e["quantity_change"], e["running_balance"]) for e in data["entries"]] == [
            (-8, 12),
            (20, 20),
        ]
        assert all(e["balance_verified"] for e in data["entries"])

    async def test_paging(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/P1/card", params={"limit": 1})

        data = response.json()
        assert len(data["entries"]) == 1
        assert data["has_more"] is True

    async def test_utc_bounds_with_z_suffix(self, stocked: AsyncClient):
        response = await stocked.get(
            "/api/stock/P1/card",
            params={"start_date": "2020-01-01T00:00:00Z", "end_date": "2099-01-01T00:00:00Z"},
        )

        assert response.status_code == 200
        assert response.json()["total"] == 2

    @pytest.mark.parametrize("end_offset_hours, expected_total", [(1, 2), (-1, 0)])
    async def test_offset_bounds_converted_to_utc(
        self, stocked: AsyncClient, end_offset_hours: int, expected_total: int
    ):
        bangkok = timezone(timedelta(hours=7))
        end = (datetime.now(UTC) + timedelta(hours=end_offset_hours)).astimezone(bangkok)

        response = await stocked.get(
            "/api/stock/P1/card",
            params={"start_date": "2020-01-01T07:00:00+07:00", "end_date": end.isoformat()},
        )

        assert response.status_code == 200
        assert response.json()["total"] == expected_total

    async def test_unknown_product_404(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/GHOST/card")
        assert response.status_code == 404


class TestAvailability:
    async def test_reports_shortfalls(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/availability",
            json={
                "type": "OUT",
                "items": [
                    {"product_id": "P1", "quantity": 15},
                    {"product_id": "P2", "quantity": 5},
                ],
            },
        )

        data = response.json()
        assert data["valid"] is False
        assert [(e["product_id"], e["shortfall"]) for e in data["errors"]] == [("P1", 3)]

    async def test_credit_always_valid(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/availability",
            json={"type": "RETURN_IN", "items": [{"product_id": "P3", "quantity": 100}]},
        )
        assert response.json() == {"valid": True, "errors": []}


class TestAdjustments:
    async def test_preview_writes_nothing(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/adjustments/preview",
            json={"counts": [{"product_id": "P1", "actual_stock": 10}]},
        )

        data = response.json()
        assert data["transaction"] is None
        assert data["adjustments"][0]["difference"] == -2
        assert (await stocked.get("/api/stock/P1")).json()["current_stock"] == 12

    async def test_apply_corrects_differing_products(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/adjustments",
            json={
                "counts": [
                    {"product_id": "P1", "actual_stock": 10},
                    {"product_id": "P2", "actual_stock": 5},
                    {"product_id": "P3", "actual_stock": 4},
                ],
                "user_id": "auditor",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == {
            "total_adjustments": 3,
            "increases": 1,
            "decreases": 1,
            "no_changes": 1,
            "total_increase_quantity": 4,
            "total_decrease_quantity": 2,
        }
        transaction = data["transaction"]
        assert transaction["type"] == "ADJUST"
        assert [m["product_id"] for m in transaction["movements"]] == ["P1", "P3"]

        levels = {
            item["product_id"]: item["current_stock"]
            for item in (await stocked.get("/api/stock/levels")).json()["items"]
        }
        assert levels == {"P1": 10, "P2": 5, "P3": 4}

    async def test_matching_count_creates_no_transaction(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/adjustments",
            json={"counts": [{"product_id": "P2", "actual_stock": 5}]},
        )

        assert response.json()["transaction"] is None
        listing = await stocked.get("/api/transactions", params={"type": "ADJUST"})
        assert listing.json()["total"] == 0

    async def test_duplicate_count_400(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/adjustments",
            json={
                "counts": [
                    {"product_id": "P1", "actual_stock": 1},
                    {"product_id": "P1", "actual_stock": 2},
                ]
            },
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_unknown_product_404(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/adjustments",
            json={"counts": [{"product_id": "GHOST", "actual_stock": 1}]},
        )
        assert response.status_code == 404

    async def test_negative_count_422(self, stocked: AsyncClient):
        response = await stocked.post(
            "/api/stock/adjustments",
            json={"counts": [{"product_id": "P1", "actual_stock": -1}]},
        )
        assert response.status_code == 422


class TestIntegrity:
    async def test_clean_ledger(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/P1/integrity")

        data = response.json()
        assert data["valid"] is True
        assert data["total_movements"] == 2
        assert data["final_balance"] == 12
        assert data["errors"] == []

    async def test_no_movements(self, stocked: AsyncClient):
        data = (await stocked.get("/api/stock/P3/integrity")).json()
        assert data["valid"] is True
        assert data["message"] == "No movements found for product"

    async def test_unknown_product_404(self, stocked: AsyncClient):
        response = await stocked.get("/api/stock/GHOST/integrity")
        assert response.status_code == 404
