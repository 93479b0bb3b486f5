"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates the stock ledger by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate the ledger engine and stores
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers that write.
"""

from src.application.services import get_stock_engine, reset_services
from src.application.use_cases import (
    CreateStockTransactionUseCase,
    GetStockCardUseCase,
    StockAdjustmentUseCase,
)

__all__ = [
    # Use Cases
    "CreateStockTransactionUseCase",
    "StockAdjustmentUseCase",
    "GetStockCardUseCase",
    # Service factories
    "get_stock_engine",
    "reset_services",
]
