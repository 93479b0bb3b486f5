"""Abstract interface for the stock ledger (movement log + transactions)."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import date, datetime
from typing import Any

from src.core.entities.stock import MovementType, StockMovement, StockMovementDraft
from src.core.entities.transaction import StockTransaction

# Opaque handle of an open write scope, as yielded by ILedgerStore.transaction().
# Reads that receive it observe the scope's uncommitted appends.
LedgerScope = Any


class ILedgerStore(ABC):
    """
    Interface for append-only stock movement and transaction persistence.

    Movements are only ever appended. There is deliberately no update or
    delete operation for movements or transactions.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[LedgerScope]:
        """
        Open an atomic write scope.

        Everything appended through the yielded scope commits together on
        clean exit and is discarded if the block raises.
        """
        pass

    # Movement reads
    @abstractmethod
    async def get_latest_movement(
        self, product_id: str, ctx: LedgerScope | None = None
    ) -> StockMovement | None:
        """Get the most recent movement (by created_at, then id) for a product."""
        pass

    @abstractmethod
    async def get_latest_movements(
        self, product_ids: list[str], ctx: LedgerScope | None = None
    ) -> dict[str, StockMovement]:
        """Latest movement per product; products without history are absent."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[StockMovement]:
        """List a product's movements in ledger order (oldest first by default)."""
        pass

    @abstractmethod
    async def count_movements(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> int:
        """Count a product's movements, optionally within a date range."""
        pass

    @abstractmethod
    async def count_movements_by_product(
        self, product_ids: list[str]
    ) -> dict[str, int]:
        """Movement counts per product; every requested id is a key."""
        pass

    # Appends
    @abstractmethod
    async def append_movement(
        self, draft: StockMovementDraft, ctx: LedgerScope
    ) -> StockMovement:
        """Append a movement through an open write scope."""
        pass

    # Transactions
    @abstractmethod
    async def create_transaction(
        self, transaction: StockTransaction, ctx: LedgerScope
    ) -> StockTransaction:
        """Insert a transaction and its items through an open write scope."""
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: int) -> StockTransaction | None:
        """Get transaction by ID, with items."""
        pass

    @abstractmethod
    async def list_transactions(
        self,
        movement_type: MovementType | None = None,
        supplier_id: str | None = None,
        product_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StockTransaction]:
        """List transactions newest first; dates filter on transaction_date."""
        pass

    @abstractmethod
    async def count_transactions(
        self,
        movement_type: MovementType | None = None,
        supplier_id: str | None = None,
        product_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> int:
        """Count transactions matching the list_transactions filters."""
        pass

    @abstractmethod
    async def list_transaction_movements(
        self, transaction_id: int
    ) -> list[StockMovement]:
        """Movements produced by one transaction, in ledger order."""
        pass

    @abstractmethod
    async def last_reference_number(
        self, prefix: str, ctx: LedgerScope | None = None
    ) -> str | None:
        """Highest reference number starting with prefix, if any."""
        pass
