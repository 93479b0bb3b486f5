"""Tests for stock ledger entities."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from src.core.entities.stock import (
    MovementType,
    StockMovement,
    StockMovementDraft,
    ledger_order_key,
)


def _movement(movement_id: int, created_at: datetime, **overrides) -> StockMovement:
    fields = {
        "id": movement_id,
        "product_id": "P1",
        "transaction_id": 1,
        "movement_type": MovementType.IN,
        "quantity_before": 0,
        "quantity_change": 10,
        "quantity_after": 10,
        "created_at": created_at,
    }
    fields.update(overrides)
    return StockMovement(**fields)


class TestMovementType:
    def test_values(self):
        assert {t.value for t in MovementType} == {
            "IN",
            "OUT",
            "ADJUST",
            "RETURN_IN",
            "RETURN_OUT",
        }

    def test_is_str(self):
        assert MovementType("RETURN_OUT") is MovementType.RETURN_OUT
        assert MovementType.OUT == "OUT"

    def test_unknown_value_rejected(self):
        with pytest.raises(ValueError):
            MovementType("TRANSFER")


class TestStockMovement:
    def test_is_consistent(self):
        movement = _movement(1, datetime(2024, 1, 1))
        assert movement.is_consistent is True

    def test_is_inconsistent(self):
        movement = _movement(1, datetime(2024, 1, 1), quantity_after=11)
        assert movement.is_consistent is False

    def test_created_at_defaults(self):
        movement = StockMovement(
            id=1,
            product_id="P1",
            transaction_id=1,
            movement_type=MovementType.OUT,
            quantity_before=5,
            quantity_change=-2,
            quantity_after=3,
        )
        assert movement.created_at.tzinfo is None

    def test_draft_is_frozen(self):
        draft = StockMovementDraft(
            product_id="P1",
            transaction_id=1,
            movement_type=MovementType.IN,
            quantity_before=0,
            quantity_change=1,
            quantity_after=1,
        )
        with pytest.raises(ValidationError):
            draft.quantity_after = 2


class TestLedgerOrder:
    def test_orders_by_created_at_first(self):
        later = _movement(1, datetime(2024, 1, 2))
        earlier = _movement(2, datetime(2024, 1, 1))
        assert sorted([later, earlier], key=ledger_order_key) == [earlier, later]

    def test_id_breaks_timestamp_ties(self):
        moment = datetime(2024, 1, 1, 12, 0)
        second = _movement(7, moment)
        first = _movement(3, moment)
        assert [m.id for m in sorted([second, first], key=ledger_order_key)] == [3, 7]
