"""
Domain exceptions for the stock ledger.

Business-rule outcomes (insufficient stock, integrity findings) are returned
as data by the ledger engine. These exceptions cover caller bugs, missing
records, storage failures and the workflow-level rejection of a transaction.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(StockLedgerError):
    """Base exception for storage operations."""

    pass


class ProductNotFoundError(StorageError):
    """Product not found in storage."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
        )


class TransactionNotFoundError(StorageError):
    """Stock transaction not found in storage."""

    def __init__(self, transaction_id: int):
        super().__init__(
            f"Transaction not found: {transaction_id}",
            code="TRANSACTION_NOT_FOUND",
            details={"transaction_id": transaction_id},
        )


class DuplicateProductError(StorageError):
    """Product with the same id or SKU already exists."""

    def __init__(self, product_id: str, sku: str | None = None):
        super().__init__(
            f"Product already exists: {product_id}",
            code="DUPLICATE_PRODUCT",
            details={"product_id": product_id, "sku": sku},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Ledger Exceptions
class LedgerError(StockLedgerError):
    """Base exception for stock ledger operations."""

    pass


class UnknownMovementTypeError(LedgerError):
    """Movement type is not one of the supported ledger movement types."""

    def __init__(self, movement_type: Any):
        super().__init__(
            f"Unknown movement type: {movement_type}",
            code="UNKNOWN_MOVEMENT_TYPE",
            details={"movement_type": str(movement_type)},
        )


class LedgerContextRequiredError(LedgerError):
    """A write operation was attempted outside an open write scope."""

    def __init__(self, operation: str):
        super().__init__(
            f"An open ledger write scope is required for {operation}",
            code="LEDGER_CONTEXT_REQUIRED",
            details={"operation": operation},
        )


class StockValidationError(LedgerError):
    """A transaction was rejected because one or more lines lack stock."""

    def __init__(self, errors: list[dict[str, Any]]):
        summary = "; ".join(e.get("message", "") for e in errors)
        super().__init__(
            f"Stock validation failed: {summary}",
            code="INSUFFICIENT_STOCK",
            details={"errors": errors},
        )
        self.errors = errors


# Validation Exceptions
class ValidationError(StockLedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class ConfigurationError(StockLedgerError):
    """Configuration error."""

    pass
