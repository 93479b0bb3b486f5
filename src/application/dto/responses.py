"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


# --- Health / errors ---


class StorageHealthResponse(BaseModel):
    """Storage backend health status."""

    backend: str
    available: bool
    schema_version: str | None = None
    pending_migrations: list[str] = Field(default_factory=list)
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    storage: StorageHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    errors: list[dict] | None = Field(
        default=None, description="Per-line failures (stock validation)"
    )
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


class PaginatedResponse(BaseModel):
    """Base for paginated responses."""

    total: int
    limit: int
    offset: int
    has_more: bool


# --- Products ---


class ProductResponse(BaseModel):
    """Product response DTO."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    sku: str
    name: str
    brand: str | None = None
    category: str | None = None
    unit: str
    minimum_stock: int | None = None
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Page of products ordered by name."""

    items: list[ProductResponse]
    limit: int
    offset: int


# --- Ledger ---


class StockMovementResponse(BaseModel):
    """Stock movement response DTO."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: str
    transaction_id: int
    movement_type: str
    quantity_before: int
    quantity_change: int
    quantity_after: int
    created_at: datetime


class TransactionItemResponse(BaseModel):
    """Transaction line response DTO."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    product_id: str
    quantity: int
    unit_cost: float | None = None
    unit_price: float | None = None


class TransactionResponse(BaseModel):
    """Stock transaction response DTO, with its movements when loaded."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    reference_number: str
    type: str
    transaction_date: date
    supplier_id: str | None = None
    user_id: str | None = None
    notes: str | None = None
    total_value: float | None = None
    items: list[TransactionItemResponse] = Field(default_factory=list)
    movements: list[StockMovementResponse] = Field(default_factory=list)
    created_at: datetime


class TransactionListResponse(PaginatedResponse):
    """Paginated transaction list."""

    items: list[TransactionResponse]


class CurrentStockResponse(BaseModel):
    """Derived stock of one product."""

    product_id: str
    current_stock: int


class StockCardEntryResponse(StockMovementResponse):
    """Stock card row: a movement plus its recomputed balance."""

    running_balance: int
    balance_verified: bool


class StockCardResponse(PaginatedResponse):
    """Stock card of one product, newest movements first."""

    product: ProductResponse
    current_stock: int
    entries: list[StockCardEntryResponse]


class AvailabilityErrorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    current_stock: int
    requested_quantity: int
    shortfall: int
    message: str


class AvailabilityResponse(BaseModel):
    """Outcome of a dry-run availability check."""

    model_config = ConfigDict(from_attributes=True)

    valid: bool
    errors: list[AvailabilityErrorResponse] = Field(default_factory=list)


class IntegrityIssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    movement_id: int
    issue: str
    expected: int
    actual: int
    message: str


class IntegrityReportResponse(BaseModel):
    """Read-only ledger audit result for one product."""

    model_config = ConfigDict(from_attributes=True)

    valid: bool
    product_id: str
    total_movements: int | None = None
    final_balance: int | None = None
    errors: list[IntegrityIssueResponse] = Field(default_factory=list)
    message: str | None = None


# --- Adjustments ---


class StockAdjustmentLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    current_stock: int
    actual_stock: int
    difference: int
    adjustment_type: str
    adjustment_quantity: int


class AdjustmentSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_adjustments: int
    increases: int
    decreases: int
    no_changes: int
    total_increase_quantity: int
    total_decrease_quantity: int


class StockAdjustmentResponse(BaseModel):
    """Physical count result; transaction is set when stock was corrected."""

    adjustments: list[StockAdjustmentLineResponse]
    summary: AdjustmentSummaryResponse
    transaction: TransactionResponse | None = None


# --- Reports ---


class StockLevelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    sku: str
    name: str
    unit: str
    current_stock: int
    minimum_stock: int | None = None
    is_low_stock: bool
    last_updated: datetime | None = None


class StockLevelsResponse(BaseModel):
    items: list[StockLevelResponse]


class StockSummaryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    sku: str
    brand: str | None = None
    name: str
    category: str | None = None
    unit: str
    current_stock: int
    minimum_stock: int | None = None
    is_low_stock: bool
    last_movement_date: datetime | None = None
    total_movements: int


class StockSummaryResponse(BaseModel):
    """Per-product stock report."""

    items: list[StockSummaryItemResponse]
    total_products: int
    low_stock_count: int
