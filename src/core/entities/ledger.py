"""Result records produced by the stock ledger engine."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.stock import StockMovement


class AvailabilityError(BaseModel):
    """A debit line that exceeds the stock available to it."""

    product_id: str
    current_stock: int
    requested_quantity: int
    shortfall: int
    message: str


class AvailabilityResult(BaseModel):
    """Outcome of an availability check; valid iff no errors."""

    valid: bool
    errors: list[AvailabilityError] = Field(default_factory=list)


class RunningBalanceEntry(StockMovement):
    """A movement annotated with the balance recomputed from zero."""

    running_balance: int
    balance_verified: bool


class AdjustmentType(str, Enum):
    """Direction of a physical-count adjustment."""

    INCREASE = "INCREASE"
    DECREASE = "DECREASE"
    NO_CHANGE = "NO_CHANGE"


class StockAdjustment(BaseModel):
    """Difference between a physical count and derived stock."""

    product_id: str
    current_stock: int
    actual_stock: int
    difference: int
    adjustment_type: AdjustmentType
    adjustment_quantity: int


class BatchAdjustmentSummary(BaseModel):
    total_adjustments: int = 0
    increases: int = 0
    decreases: int = 0
    no_changes: int = 0
    total_increase_quantity: int = 0
    total_decrease_quantity: int = 0


class BatchAdjustmentResult(BaseModel):
    adjustments: list[StockAdjustment]
    summary: BatchAdjustmentSummary


class IntegrityIssueType(str, Enum):
    """Kinds of ledger inconsistency found by the audit."""

    BALANCE_MISMATCH = "BALANCE_MISMATCH"
    CALCULATION_ERROR = "CALCULATION_ERROR"


class IntegrityIssue(BaseModel):
    movement_id: int
    issue: IntegrityIssueType
    expected: int
    actual: int
    message: str


class IntegrityReport(BaseModel):
    """
    Result of a read-only ledger audit for one product.

    When the product has no movements only `valid`, `product_id` and
    `message` are set.
    """

    valid: bool
    product_id: str
    total_movements: int | None = None
    final_balance: int | None = None
    errors: list[IntegrityIssue] = Field(default_factory=list)
    message: str | None = None


class MovementHistoryPage(BaseModel):
    """Newest-first page of a product's movements."""

    movements: list[StockMovement]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


class StockLevel(BaseModel):
    """Lightweight real-time stock level of one product."""

    product_id: str
    sku: str
    name: str
    unit: str
    current_stock: int
    minimum_stock: int | None = None
    is_low_stock: bool = False
    last_updated: datetime | None = None


class StockSummaryItem(BaseModel):
    """Per-product row of the stock summary report."""

    product_id: str
    sku: str
    brand: str | None = None
    name: str
    category: str | None = None
    unit: str
    current_stock: int
    minimum_stock: int | None = None
    is_low_stock: bool = False
    last_movement_date: datetime | None = None
    total_movements: int = 0


class PhysicalCount(BaseModel):
    """A counted on-hand quantity for one product."""

    product_id: str
    actual_stock: int
