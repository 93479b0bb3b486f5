"""Product entity as seen by the stock ledger."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.core.entities.stock import utcnow


class Product(BaseModel):
    """
    A stocked product.

    Current stock is never stored here; it is always derived from the
    product's latest ledger movement.
    """

    id: str
    sku: str
    name: str
    brand: str | None = None
    category: str | None = None
    unit: str = "pcs"
    minimum_stock: int | None = None  # low-stock threshold, unset or 0 = none
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def is_low_stock(self, current_stock: int) -> bool:
        """Whether the given stock level is at or below the threshold."""
        if not self.minimum_stock:
            return False
        return current_stock <= self.minimum_stock
