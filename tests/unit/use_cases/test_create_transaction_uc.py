"""Tests for CreateStockTransactionUseCase."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import CreateTransactionRequest
from src.application.use_cases.create_transaction import (
    CreateStockTransactionUseCase,
    ensure_products_exist,
    next_reference_number,
)
from src.core.entities.stock import MovementType
from src.core.exceptions import ProductNotFoundError, StockValidationError


@pytest.fixture
def use_case(ledger_store, product_store, engine):
    return CreateStockTransactionUseCase(
        ledger_store=ledger_store,
        product_store=product_store,
        engine=engine,
    )


@pytest.fixture
async def paints(make_product):
    await make_product("P1")
    await make_product("P2")


def _stock_in(*pairs, **extra) -> CreateTransactionRequest:
    return CreateTransactionRequest(
        type=MovementType.IN,
        supplier_id="SUP-1",
        items=[
            {"product_id": pid, "quantity": qty, "unit_cost": 10.0} for pid, qty in pairs
        ],
        **extra,
    )


def _stock_out(*pairs) -> CreateTransactionRequest:
    return CreateTransactionRequest(
        type=MovementType.OUT,
        items=[
            {"product_id": pid, "quantity": qty, "unit_price": 15.0} for pid, qty in pairs
        ],
    )


class TestCreateStockTransactionUseCase:
    async def test_stock_in_creates_header_and_movements(self, use_case, paints, engine):
        result = await use_case.execute(_stock_in(("P1", 20), ("P2", 5)))

        assert result.transaction.id is not None
        assert result.transaction.type == MovementType.IN
        assert result.transaction.total_value == 250.0
        assert [i.id for i in result.transaction.items] == [1, 2]
        assert [(m.product_id, m.quantity_after) for m in result.movements] == [
            ("P1", 20),
            ("P2", 5),
        ]
        assert all(m.transaction_id == result.transaction.id for m in result.movements)
        assert await engine.get_current_stock("P1") == 20

    async def test_stock_out_after_stock_in(self, use_case, paints):
        await use_case.execute(_stock_in(("P1", 20)))
        result = await use_case.execute(_stock_out(("P1", 8)))

        [movement] = result.movements
        assert movement.quantity_before == 20
        assert movement.quantity_change == -8
        assert movement.quantity_after == 12

    async def test_insufficient_stock_rejected_atomically(
        self, use_case, paints, ledger_store, engine
    ):
        await use_case.execute(_stock_in(("P1", 12)))

        with pytest.raises(StockValidationError) as exc_info:
            await use_case.execute(_stock_out(("P2", 1), ("P1", 15)))

        shortfalls = {e["product_id"]: e["shortfall"] for e in exc_info.value.errors}
        assert shortfalls == {"P2": 1, "P1": 3}
        assert await ledger_store.count_transactions() == 1
        assert await engine.get_current_stock("P1") == 12

    async def test_unknown_product_rejected(self, use_case, paints, ledger_store):
        with pytest.raises(ProductNotFoundError):
            await use_case.execute(_stock_in(("P1", 1), ("GHOST", 1)))
        assert await ledger_store.count_transactions() == 0

    async def test_reference_numbers_increment(self, use_case, paints):
        first = await use_case.execute(_stock_in(("P1", 1)))
        second = await use_case.execute(_stock_in(("P1", 1)))

        today = f"{date.today():%Y%m%d}"
        assert first.transaction.reference_number == f"TXN-{today}-0001"
        assert second.transaction.reference_number == f"TXN-{today}-0002"

    async def test_adjust_may_go_negative(self, use_case, paints):
        request = CreateTransactionRequest(
            type=MovementType.ADJUST,
            items=[{"product_id": "P1", "quantity": -3}],
        )
        result = await use_case.execute(request)
        assert result.movements[0].quantity_after == -3

    async def test_adjust_negative_rejected_when_disabled(
        self, use_case, paints, monkeypatch
    ):
        from src.config import reset_settings

        monkeypatch.setenv("LEDGER_ALLOW_NEGATIVE_ADJUSTMENTS", "false")
        reset_settings()

        request = CreateTransactionRequest(
            type=MovementType.ADJUST,
            items=[{"product_id": "P1", "quantity": -3}],
        )
        with pytest.raises(StockValidationError):
            await use_case.execute(request)

    async def test_transaction_date_and_notes_kept(self, use_case, paints):
        result = await use_case.execute(
            _stock_in(("P1", 1), transaction_date=date(2024, 5, 1), notes="  Delivery  ")
        )
        assert result.transaction.transaction_date == date(2024, 5, 1)
        assert result.transaction.notes == "Delivery"
        assert result.transaction.supplier_id == "SUP-1"

    async def test_to_response_includes_movements(self, use_case, paints):
        result = await use_case.execute(_stock_in(("P1", 3)))
        response = use_case.to_response(result)

        assert response.id == result.transaction.id
        assert response.type == "IN"
        assert len(response.items) == 1
        assert response.movements[0].quantity_after == 3


class TestEnsureProductsExist:
    async def test_passes_for_known_products(self, product_store, make_product):
        await make_product("P1")
        await ensure_products_exist(product_store, ["P1", "P1"])

    async def test_reports_first_missing(self, product_store, make_product):
        await make_product("P1")
        with pytest.raises(ProductNotFoundError) as exc_info:
            await ensure_products_exist(product_store, ["P1", "X1", "X2"])
        assert exc_info.value.details["product_id"] == "X1"


class TestNextReferenceNumber:
    async def test_first_of_day(self):
        store = AsyncMock()
        store.last_reference_number.return_value = None

        reference = await next_reference_number(store, object(), "TXN", on=date(2024, 1, 15))

        assert reference == "TXN-20240115-0001"
        store.last_reference_number.assert_awaited_once()
        assert store.last_reference_number.call_args[0][0] == "TXN-20240115"

    async def test_continues_sequence(self):
        store = AsyncMock()
        store.last_reference_number.return_value = "TXN-20240115-0041"

        reference = await next_reference_number(store, object(), "TXN", on=date(2024, 1, 15))

        assert reference == "TXN-20240115-0042"

    async def test_custom_prefix(self):
        store = AsyncMock()
        store.last_reference_number.return_value = None

        reference = await next_reference_number(store, None, "PNT", on=date(2025, 12, 31))

        assert reference == "PNT-20251231-0001"
