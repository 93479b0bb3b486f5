"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.stock_calculation import (
    CREDIT_TYPES,
    DEBIT_TYPES,
    StockCalculationEngine,
)

__all__ = [
    # Stock ledger engine
    "StockCalculationEngine",
    "CREDIT_TYPES",
    "DEBIT_TYPES",
]
