"""
Storage infrastructure implementations.

The backend is chosen explicitly through STORAGE_BACKEND ("sqlite" or
"memory"); there is no fallback from one to the other.
"""

from src.config import get_settings
from src.core.exceptions import ConfigurationError
from src.core.interfaces import ILedgerStore, IProductStore
from src.infrastructure.storage import memory, sqlite
from src.infrastructure.storage.memory import InMemoryLedgerStore, InMemoryProductStore
from src.infrastructure.storage.sqlite import (
    SQLiteLedgerStore,
    SQLiteProductStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

_BACKENDS = {"sqlite": sqlite, "memory": memory}


def _backend_module(backend: str | None):
    name = backend or get_settings().storage.backend
    try:
        return _BACKENDS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown storage backend: {name}") from None


async def get_ledger_store(backend: str | None = None) -> ILedgerStore:
    """Ledger store for the configured (or given) backend."""
    return await _backend_module(backend).get_ledger_store()


async def get_product_store(backend: str | None = None) -> IProductStore:
    """Product store for the configured (or given) backend."""
    return await _backend_module(backend).get_product_store()


async def close_storage() -> None:
    """Release backend resources: the SQLite pool and in-memory singletons."""
    await close_pool()
    memory.reset_stores()


__all__ = [
    # Factories
    "get_ledger_store",
    "get_product_store",
    "close_storage",
    # Store classes
    "SQLiteLedgerStore",
    "SQLiteProductStore",
    "InMemoryLedgerStore",
    "InMemoryProductStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
