"""Stock transaction entities."""

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from src.core.entities.stock import MovementType, StockLineItem, utcnow


class TransactionItem(StockLineItem):
    """Line of a stock transaction with optional pricing."""

    id: int | None = None
    unit_cost: float | None = None  # purchase side (IN, RETURN_IN)
    unit_price: float | None = None  # sales side (OUT, RETURN_OUT)

    @property
    def line_value(self) -> float:
        """Price x quantity, preferring unit_cost over unit_price."""
        price = self.unit_cost or self.unit_price or 0.0
        return price * self.quantity


class StockTransaction(BaseModel):
    """
    A stock transaction: one or more line items moved together.

    Its movements are appended to the ledger in the same write scope as
    the transaction row itself.
    """

    id: int | None = None
    reference_number: str
    type: MovementType
    transaction_date: date = Field(default_factory=date.today)
    supplier_id: str | None = None
    user_id: str | None = None
    notes: str | None = None
    total_value: float | None = None
    items: list[TransactionItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def compute_total_value(self) -> "StockTransaction":
        """Fill total_value from priced lines when not given explicitly."""
        if self.total_value is None and any(
            item.unit_cost or item.unit_price for item in self.items
        ):
            self.total_value = sum(item.line_value for item in self.items)
        return self
