"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.application.services import reset_services
from src.config import reset_settings
from src.core.entities.product import Product
from src.core.services import StockCalculationEngine
from src.infrastructure.storage import memory
from src.infrastructure.storage.memory import InMemoryLedgerStore, InMemoryProductStore


@pytest.fixture(autouse=True)
def memory_backend(monkeypatch: pytest.MonkeyPatch):
    """Run every test against fresh in-memory storage and settings."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.delenv("LEDGER_ALLOW_NEGATIVE_ADJUSTMENTS", raising=False)
    reset_settings()
    reset_services()
    memory.reset_stores()
    yield
    reset_settings()
    reset_services()
    memory.reset_stores()


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def product_store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def engine(
    ledger_store: InMemoryLedgerStore, product_store: InMemoryProductStore
) -> StockCalculationEngine:
    return StockCalculationEngine(ledger_store, product_store)


@pytest.fixture
def make_product(
    product_store: InMemoryProductStore,
) -> Callable[..., Awaitable[Product]]:
    """Factory registering a product in the fixture product store."""

    async def _make(product_id: str = "P1", **overrides) -> Product:
        fields = {
            "id": product_id,
            "sku": f"SKU-{product_id}",
            "name": f"Paint {product_id}",
            "brand": "Nippon",
            "category": "Exterior",
            "unit": "can",
        }
        fields.update(overrides)
        return await product_store.create_product(Product(**fields))

    return _make


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Async client over the app, wired to the in-memory backend."""
    from src.api.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_product_data() -> dict:
    """Sample product payload for the products endpoint."""
    return {
        "id": "NIP-EXT-5L",
        "sku": "NIP-EXT-5L-WHT",
        "name": "Nippon Weatherbond 5L White",
        "brand": "Nippon",
        "category": "Exterior",
        "unit": "can",
        "minimum_stock": 5,
    }
