"""Stock ledger entities: movement types, line items and movement records."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the ledger."""
    return datetime.now(UTC).replace(tzinfo=None)


def as_ledger_time(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class MovementType(str, Enum):
    """Types of stock movements (shared with transaction types)."""

    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"
    RETURN_IN = "RETURN_IN"
    RETURN_OUT = "RETURN_OUT"


class StockLineItem(BaseModel):
    """A single (product, quantity) line handed to the ledger engine."""

    product_id: str
    quantity: int


class StockMovementDraft(BaseModel):
    """A computed movement that has not been appended to the ledger yet."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    transaction_id: int
    movement_type: MovementType
    quantity_before: int
    quantity_change: int
    quantity_after: int


class StockMovement(StockMovementDraft):
    """
    One append-only ledger entry.

    Ordered per product by (created_at, id). Never updated or deleted;
    corrections are new ADJUST movements.
    """

    id: int
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_consistent(self) -> bool:
        """True when quantity_after == quantity_before + quantity_change."""
        return self.quantity_after == self.quantity_before + self.quantity_change


def ledger_order_key(movement: StockMovement) -> tuple[datetime, int]:
    """Chronological sort key: creation time, then insertion id."""
    return (movement.created_at, movement.id)
