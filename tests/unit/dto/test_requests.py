"""Tests for request DTO validation."""

import pytest
from pydantic import ValidationError

from src.application.dto.requests import (
    CreateProductRequest,
    CreateTransactionRequest,
    PhysicalCountRequest,
    StockAdjustmentRequest,
)
from src.core.entities.stock import MovementType


def _transaction(movement_type: str, items: list[dict], **extra) -> CreateTransactionRequest:
    return CreateTransactionRequest(type=movement_type, items=items, **extra)


class TestCreateTransactionRequest:
    def test_valid_stock_in(self):
        request = _transaction(
            "IN",
            [{"product_id": "P1", "quantity": 5, "unit_cost": 12.5}],
            supplier_id="SUP-1",
        )
        assert request.type == MovementType.IN
        assert request.transaction_date is None

    def test_stock_in_requires_supplier(self):
        with pytest.raises(ValidationError, match="Supplier is required"):
            _transaction("IN", [{"product_id": "P1", "quantity": 5, "unit_cost": 1.0}])

    def test_stock_in_requires_unit_cost(self):
        with pytest.raises(ValidationError, match="Unit cost is required"):
            _transaction("IN", [{"product_id": "P1", "quantity": 5}], supplier_id="SUP-1")

    def test_stock_out_requires_unit_price(self):
        with pytest.raises(ValidationError, match="Unit price is required"):
            _transaction("OUT", [{"product_id": "P1", "quantity": 5}])

    @pytest.mark.parametrize("movement_type", ["OUT", "RETURN_IN", "RETURN_OUT"])
    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, movement_type, quantity):
        with pytest.raises(ValidationError, match="Quantity must be positive"):
            _transaction(
                movement_type,
                [{"product_id": "P1", "quantity": quantity, "unit_price": 1.0}],
            )

    def test_returns_need_no_prices(self):
        request = _transaction("RETURN_IN", [{"product_id": "P1", "quantity": 2}])
        assert request.items[0].unit_cost is None

    def test_adjust_allows_negative(self):
        request = _transaction("ADJUST", [{"product_id": "P1", "quantity": -4}])
        assert request.items[0].quantity == -4

    def test_adjust_rejects_zero(self):
        with pytest.raises(ValidationError, match="cannot be zero"):
            _transaction("ADJUST", [{"product_id": "P1", "quantity": 0}])

    def test_items_required(self):
        with pytest.raises(ValidationError):
            _transaction("ADJUST", [])

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            _transaction("TRANSFER", [{"product_id": "P1", "quantity": 1}])

    def test_prices_must_be_positive(self):
        with pytest.raises(ValidationError):
            _transaction("OUT", [{"product_id": "P1", "quantity": 1, "unit_price": 0}])

    def test_notes_stripped_and_bounded(self):
        request = _transaction(
            "ADJUST", [{"product_id": "P1", "quantity": 1}], notes="  recount  "
        )
        assert request.notes == "recount"
        with pytest.raises(ValidationError):
            _transaction("ADJUST", [{"product_id": "P1", "quantity": 1}], notes="x" * 1001)


class TestCreateProductRequest:
    def test_defaults_and_stripping(self):
        request = CreateProductRequest(sku=" NIP-5L ", name=" Weatherbond ")
        assert request.sku == "NIP-5L"
        assert request.name == "Weatherbond"
        assert request.unit == "pcs"
        assert request.id is None

    @pytest.mark.parametrize("sku", ["has space", "semi;colon", "", "x" * 51])
    def test_invalid_sku(self, sku):
        with pytest.raises(ValidationError):
            CreateProductRequest(sku=sku, name="Paint")

    def test_negative_minimum_stock(self):
        with pytest.raises(ValidationError):
            CreateProductRequest(sku="S1", name="Paint", minimum_stock=-1)


class TestStockAdjustmentRequest:
    def test_counts_required(self):
        with pytest.raises(ValidationError):
            StockAdjustmentRequest(counts=[])

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            PhysicalCountRequest(product_id="P1", actual_stock=-1)

    def test_zero_count_allowed(self):
        assert PhysicalCountRequest(product_id="P1", actual_stock=0).actual_stock == 0
