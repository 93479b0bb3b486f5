"""In-memory storage implementations."""

from src.infrastructure.storage.memory.ledger_store import (
    InMemoryLedgerStore,
    MemoryWriteScope,
)
from src.infrastructure.storage.memory.product_store import InMemoryProductStore

# Singleton instances
_ledger_store: InMemoryLedgerStore | None = None
_product_store: InMemoryProductStore | None = None


async def get_ledger_store() -> InMemoryLedgerStore:
    """Get singleton in-memory ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = InMemoryLedgerStore()
    return _ledger_store


async def get_product_store() -> InMemoryProductStore:
    """Get singleton in-memory product store instance."""
    global _product_store
    if _product_store is None:
        _product_store = InMemoryProductStore()
    return _product_store


def reset_stores() -> None:
    """Drop the in-memory singletons (tests)."""
    global _ledger_store, _product_store
    _ledger_store = None
    _product_store = None


__all__ = [
    "InMemoryLedgerStore",
    "InMemoryProductStore",
    "MemoryWriteScope",
    "get_ledger_store",
    "get_product_store",
    "reset_stores",
]
