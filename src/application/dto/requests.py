"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.entities.stock import MovementType

# Movement types whose line quantities must be strictly positive
_POSITIVE_QUANTITY_TYPES = {
    MovementType.IN,
    MovementType.OUT,
    MovementType.RETURN_IN,
    MovementType.RETURN_OUT,
}


# --- Products ---


class CreateProductRequest(BaseModel):
    """Request to register a stocked product."""

    id: str | None = Field(
        default=None,
        min_length=1,
        description="Product ID (generated when omitted)",
    )
    sku: str = Field(
        ...,
        min_length=1,
        max_length=50,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Stock keeping unit",
        examples=["NIP-EXT-5L-WHT"],
    )
    name: str = Field(..., min_length=1, max_length=200)
    brand: str | None = Field(default=None, max_length=100, examples=["Nippon"])
    category: str | None = Field(default=None, max_length=100, examples=["Exterior"])
    unit: str = Field(default="pcs", min_length=1, max_length=20, examples=["can", "pail"])
    minimum_stock: int | None = Field(
        default=None,
        ge=0,
        le=999999,
        description="Low-stock threshold (unset or 0 disables the flag)",
    )

    @field_validator("sku", "name", "brand", "category", "unit", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


# --- Transactions ---


class TransactionItemRequest(BaseModel):
    """A single line of a stock transaction."""

    product_id: str = Field(..., min_length=1, description="Product ID")
    quantity: int = Field(..., description="Units moved; negative only for ADJUST")
    unit_cost: float | None = Field(default=None, gt=0, description="Purchase cost per unit")
    unit_price: float | None = Field(default=None, gt=0, description="Selling price per unit")


class CreateTransactionRequest(BaseModel):
    """Request to create a stock transaction and its ledger movements."""

    type: MovementType = Field(..., description="Transaction / movement type")
    transaction_date: date | None = Field(
        default=None,
        description="Business date of the transaction (defaults to today)",
    )
    supplier_id: str | None = Field(default=None, description="Supplier (required for IN)")
    user_id: str | None = Field(default=None, description="User recording the transaction")
    notes: str | None = Field(default=None, max_length=1000)
    items: list[TransactionItemRequest] = Field(
        ..., min_length=1, description="Line items to move"
    )

    @field_validator("notes", mode="before")
    @classmethod
    def strip_notes(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_for_type(self) -> "CreateTransactionRequest":
        """Apply the per-type rules on top of the shared shape."""
        if self.type in _POSITIVE_QUANTITY_TYPES:
            for item in self.items:
                if item.quantity <= 0:
                    raise ValueError("Quantity must be positive")
        elif any(item.quantity == 0 for item in self.items):
            raise ValueError("Adjustment quantity cannot be zero")

        if self.type == MovementType.IN:
            if not self.supplier_id:
                raise ValueError("Supplier is required for stock in transactions")
            if any(item.unit_cost is None for item in self.items):
                raise ValueError("Unit cost is required for stock in transactions")

        if self.type == MovementType.OUT:
            if any(item.unit_price is None for item in self.items):
                raise ValueError("Unit price is required for stock out transactions")

        return self


class AvailabilityCheckRequest(BaseModel):
    """Dry-run availability check for a set of lines."""

    type: MovementType
    items: list[TransactionItemRequest] = Field(..., min_length=1)
    allow_negative: bool = False


# --- Physical counts ---


class PhysicalCountRequest(BaseModel):
    """A counted on-hand quantity for one product."""

    product_id: str = Field(..., min_length=1)
    actual_stock: int = Field(..., ge=0, description="Units counted on the shelf")


class StockAdjustmentRequest(BaseModel):
    """Physical count to reconcile against the ledger."""

    counts: list[PhysicalCountRequest] = Field(..., min_length=1)
    user_id: str | None = None
    notes: str | None = Field(default=None, max_length=1000)
