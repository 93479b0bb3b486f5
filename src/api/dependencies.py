"""
Dependency injection container for FastAPI.

Provides store, engine and use case instances to route handlers. Tests
swap any of them through app.dependency_overrides.
"""

from src.application.services import get_stock_engine
from src.application.use_cases import (
    CreateStockTransactionUseCase,
    GetStockCardUseCase,
    StockAdjustmentUseCase,
)
from src.core.interfaces import ILedgerStore, IProductStore
from src.core.services import StockCalculationEngine
from src.infrastructure.storage import get_ledger_store, get_product_store


# Store dependencies
async def get_ledger() -> ILedgerStore:
    """Get ledger store for the configured backend."""
    return await get_ledger_store()


async def get_products() -> IProductStore:
    """Get product store for the configured backend."""
    return await get_product_store()


# Service dependencies
async def get_engine() -> StockCalculationEngine:
    """Get stock calculation engine."""
    return await get_stock_engine()


# Use case dependencies
async def get_create_transaction_use_case() -> CreateStockTransactionUseCase:
    """Get create stock transaction use case."""
    return CreateStockTransactionUseCase(
        ledger_store=await get_ledger_store(),
        product_store=await get_product_store(),
        engine=await get_stock_engine(),
    )


async def get_stock_adjustment_use_case() -> StockAdjustmentUseCase:
    """Get stock adjustment use case."""
    return StockAdjustmentUseCase(
        ledger_store=await get_ledger_store(),
        product_store=await get_product_store(),
        engine=await get_stock_engine(),
    )


async def get_stock_card_use_case() -> GetStockCardUseCase:
    """Get stock card use case."""
    return GetStockCardUseCase(
        ledger_store=await get_ledger_store(),
        product_store=await get_product_store(),
        engine=await get_stock_engine(),
    )
