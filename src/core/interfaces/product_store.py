"""
Abstract interface for product storage.

Products are owned by the surrounding application; the ledger only needs
to create, look up and list them.
"""

from abc import ABC, abstractmethod

from src.core.entities.product import Product


class IProductStore(ABC):
    """Abstract interface for product storage."""

    @abstractmethod
    async def create_product(self, product: Product) -> Product:
        """Create a new product record."""

    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID."""

    @abstractmethod
    async def get_products(self, product_ids: list[str]) -> list[Product]:
        """Get the products that exist among the given IDs, ordered by name."""

    @abstractmethod
    async def list_products(
        self,
        limit: int | None = 500,
        offset: int = 0,
        category: str | None = None,
    ) -> list[Product]:
        """List products ordered by name; limit=None returns every match."""
