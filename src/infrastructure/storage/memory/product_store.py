"""In-memory implementation of product storage."""

from src.config import get_logger
from src.core.entities.product import Product
from src.core.entities.stock import utcnow
from src.core.exceptions import DuplicateProductError
from src.core.interfaces.product_store import IProductStore

logger = get_logger(__name__)


class InMemoryProductStore(IProductStore):
    """Dict-backed product storage keyed by product id."""

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}

    async def create_product(self, product: Product) -> Product:
        if product.id in self._products or any(
            p.sku == product.sku for p in self._products.values()
        ):
            raise DuplicateProductError(product.id, product.sku)

        now = utcnow()
        product.created_at = now
        product.updated_at = now
        self._products[product.id] = product.model_copy()
        logger.info("product_created", product_id=product.id, sku=product.sku)
        return product

    async def get_product(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        return product.model_copy() if product is not None else None

    async def get_products(self, product_ids: list[str]) -> list[Product]:
        wanted = set(product_ids)
        return [p for p in self._sorted() if p.id in wanted]

    async def list_products(
        self,
        limit: int | None = 500,
        offset: int = 0,
        category: str | None = None,
    ) -> list[Product]:
        products = [p for p in self._sorted() if not category or p.category == category]
        end = None if limit is None else offset + limit
        return products[offset:end]

    def _sorted(self) -> list[Product]:
        return [
            p.model_copy()
            for p in sorted(self._products.values(), key=lambda p: (p.name, p.id))
        ]
