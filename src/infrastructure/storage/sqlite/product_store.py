"""SQLite implementation of product storage."""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.product import Product
from src.core.entities.stock import utcnow
from src.core.exceptions import DuplicateProductError
from src.core.interfaces.product_store import IProductStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteProductStore(IProductStore):
    """SQLite implementation of product storage."""

    async def create_product(self, product: Product) -> Product:
        """Create a new product record."""
        now = utcnow()
        product.created_at = now
        product.updated_at = now
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO products (
                        id, sku, name, brand, category, unit,
                        minimum_stock, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        product.id,
                        product.sku,
                        product.name,
                        product.brand,
                        product.category,
                        product.unit,
                        product.minimum_stock,
                        product.created_at.isoformat(),
                        product.updated_at.isoformat(),
                    ),
                )
        except aiosqlite.IntegrityError as e:
            raise DuplicateProductError(product.id, product.sku) from e

        logger.info("product_created", product_id=product.id, sku=product.sku)
        return product

    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM products WHERE id = ?", (product_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def get_products(self, product_ids: list[str]) -> list[Product]:
        """Get existing products among the given IDs."""
        if not product_ids:
            return []
        placeholders = ", ".join("?" for _ in product_ids)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM products WHERE id IN ({placeholders}) ORDER BY name, id",
                tuple(product_ids),
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    async def list_products(
        self,
        limit: int | None = 500,
        offset: int = 0,
        category: str | None = None,
    ) -> list[Product]:
        """List products ordered by name."""
        query = "SELECT * FROM products"
        params: list = []
        if category:
            query += " WHERE category = ?"
            params.append(category)
        query += " ORDER BY name, id LIMIT ? OFFSET ?"
        params.extend([-1 if limit is None else limit, offset])

        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        return Product(
            id=row["id"],
            sku=row["sku"],
            name=row["name"],
            brand=row["brand"],
            category=row["category"],
            unit=row["unit"],
            minimum_stock=row["minimum_stock"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
