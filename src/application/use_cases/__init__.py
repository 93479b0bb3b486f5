"""Application use cases."""

from src.application.use_cases.adjust_stock import (
    StockAdjustmentResult,
    StockAdjustmentUseCase,
)
from src.application.use_cases.create_transaction import (
    CreateStockTransactionUseCase,
    CreateTransactionResult,
)
from src.application.use_cases.get_stock_card import GetStockCardUseCase, StockCardResult

__all__ = [
    "CreateStockTransactionUseCase",
    "CreateTransactionResult",
    "StockAdjustmentUseCase",
    "StockAdjustmentResult",
    "GetStockCardUseCase",
    "StockCardResult",
]
