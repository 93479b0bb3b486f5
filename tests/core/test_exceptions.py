"""Unit tests for domain exceptions."""

import pytest

from src.core.exceptions import (
    ConfigurationError,
    DatabaseError,
    DuplicateProductError,
    LedgerContextRequiredError,
    LedgerError,
    ProductNotFoundError,
    StockLedgerError,
    StockValidationError,
    StorageError,
    TransactionNotFoundError,
    UnknownMovementTypeError,
    ValidationError,
)


class TestStockLedgerError:
    """Tests for the base exception."""

    def test_basic_initialization(self):
        error = StockLedgerError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "StockLedgerError"
        assert error.details == {}

    def test_with_custom_code(self):
        error = StockLedgerError("Error message", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_to_dict(self):
        error = StockLedgerError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }

    def test_subclass_default_code_is_class_name(self):
        assert ConfigurationError("bad backend").code == "ConfigurationError"


class TestStorageErrors:
    def test_product_not_found(self):
        error = ProductNotFoundError("P-404")
        assert isinstance(error, StorageError)
        assert error.code == "PRODUCT_NOT_FOUND"
        assert error.details == {"product_id": "P-404"}
        assert "P-404" in error.message

    def test_transaction_not_found(self):
        error = TransactionNotFoundError(42)
        assert error.code == "TRANSACTION_NOT_FOUND"
        assert error.details["transaction_id"] == 42

    def test_duplicate_product(self):
        error = DuplicateProductError("P1", "SKU-1")
        assert error.code == "DUPLICATE_PRODUCT"
        assert error.details == {"product_id": "P1", "sku": "SKU-1"}

    def test_database_error(self):
        error = DatabaseError("append_movement", "disk I/O error")
        assert error.code == "DATABASE_ERROR"
        assert "append_movement" in error.message


class TestLedgerErrors:
    def test_unknown_movement_type(self):
        error = UnknownMovementTypeError("TRANSFER")
        assert isinstance(error, LedgerError)
        assert error.code == "UNKNOWN_MOVEMENT_TYPE"
        assert error.details["movement_type"] == "TRANSFER"

    def test_context_required(self):
        error = LedgerContextRequiredError("append_movement")
        assert error.code == "LEDGER_CONTEXT_REQUIRED"
        assert "append_movement" in error.message

    def test_stock_validation_error_keeps_every_line(self):
        lines = [
            {"product_id": "P1", "shortfall": 3, "message": "Insufficient stock for product P1"},
            {"product_id": "P2", "shortfall": 1, "message": "Insufficient stock for product P2"},
        ]
        error = StockValidationError(lines)
        assert error.code == "INSUFFICIENT_STOCK"
        assert error.errors == lines
        assert error.details["errors"] == lines
        assert "P1" in error.message and "P2" in error.message

    def test_catchable_as_base(self):
        with pytest.raises(StockLedgerError):
            raise StockValidationError([])


class TestValidationError:
    def test_fields(self):
        error = ValidationError("counts", "Product counted more than once", "P1")
        assert error.code == "VALIDATION_ERROR"
        assert error.details == {
            "field": "counts",
            "message": "Product counted more than once",
            "value": "P1",
        }

    def test_long_value_truncated(self):
        error = ValidationError("notes", "too long", "x" * 500)
        assert len(error.details["value"]) == 100

    def test_none_value(self):
        assert ValidationError("sku", "missing").details["value"] is None
