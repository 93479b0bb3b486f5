"""
Service factory functions for dependency injection.

This module wires infrastructure implementations to core services. Use
cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from src.config import get_settings
from src.core.services import StockCalculationEngine

if TYPE_CHECKING:
    from src.core.interfaces import ILedgerStore, IProductStore


# Singleton service instance
_stock_engine: StockCalculationEngine | None = None


async def get_stock_engine(
    ledger_store: "ILedgerStore | None" = None,
    product_store: "IProductStore | None" = None,
) -> StockCalculationEngine:
    """
    Get or create the StockCalculationEngine.

    Creates infrastructure dependencies for the configured storage backend
    if not provided. Only the default-wired engine is cached.

    Args:
        ledger_store: Optional ledger store override
        product_store: Optional product store override

    Returns:
        Configured StockCalculationEngine
    """
    global _stock_engine

    overridden = ledger_store is not None or product_store is not None
    if _stock_engine is not None and not overridden:
        return _stock_engine

    # Lazy import infrastructure to avoid circular imports
    from src.infrastructure.storage import get_ledger_store, get_product_store

    engine = StockCalculationEngine(
        ledger_store=ledger_store or await get_ledger_store(),
        product_store=product_store or await get_product_store(),
        allow_negative_adjustments=get_settings().ledger.allow_negative_adjustments,
    )

    if not overridden:
        _stock_engine = engine

    return engine


def reset_services() -> None:
    """Reset service singletons (for testing)."""
    global _stock_engine
    _stock_engine = None
