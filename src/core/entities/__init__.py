"""Core domain entities."""

from src.core.entities.ledger import (
    AdjustmentType,
    AvailabilityError,
    AvailabilityResult,
    BatchAdjustmentResult,
    BatchAdjustmentSummary,
    IntegrityIssue,
    IntegrityIssueType,
    IntegrityReport,
    MovementHistoryPage,
    PhysicalCount,
    RunningBalanceEntry,
    StockAdjustment,
    StockLevel,
    StockSummaryItem,
)
from src.core.entities.product import Product
from src.core.entities.stock import (
    MovementType,
    StockLineItem,
    StockMovement,
    StockMovementDraft,
    as_ledger_time,
    ledger_order_key,
    utcnow,
)
from src.core.entities.transaction import StockTransaction, TransactionItem

__all__ = [
    # Stock entities
    "MovementType",
    "StockLineItem",
    "StockMovement",
    "StockMovementDraft",
    "ledger_order_key",
    "as_ledger_time",
    "utcnow",
    # Product
    "Product",
    # Transactions
    "StockTransaction",
    "TransactionItem",
    # Ledger results
    "AvailabilityError",
    "AvailabilityResult",
    "RunningBalanceEntry",
    "AdjustmentType",
    "StockAdjustment",
    "BatchAdjustmentResult",
    "BatchAdjustmentSummary",
    "IntegrityIssue",
    "IntegrityIssueType",
    "IntegrityReport",
    "MovementHistoryPage",
    "PhysicalCount",
    "StockLevel",
    "StockSummaryItem",
]
