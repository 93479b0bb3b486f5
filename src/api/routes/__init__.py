"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.products import router as products_router
from src.api.routes.stock import router as stock_router
from src.api.routes.transactions import router as transactions_router

__all__ = [
    "health_router",
    "products_router",
    "transactions_router",
    "stock_router",
]
