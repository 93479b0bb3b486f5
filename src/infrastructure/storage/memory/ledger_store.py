"""
In-memory implementation of the stock ledger.

Used for tests and single-process deployments without a database file.
Write scopes are serialized by an asyncio.Lock; appends are buffered on
the scope and only become visible to other readers on clean exit.
"""

import asyncio
import itertools
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime

from src.config import get_logger
from src.core.entities.stock import (
    MovementType,
    StockMovement,
    StockMovementDraft,
    ledger_order_key,
    utcnow,
)
from src.core.entities.transaction import StockTransaction
from src.core.exceptions import LedgerContextRequiredError
from src.core.interfaces.ledger_store import ILedgerStore

logger = get_logger(__name__)


@dataclass
class MemoryWriteScope:
    """Pending appends of one open write scope."""

    movements: list[StockMovement] = field(default_factory=list)
    transactions: list[StockTransaction] = field(default_factory=list)


def _require_scope(ctx: object, operation: str) -> MemoryWriteScope:
    if not isinstance(ctx, MemoryWriteScope):
        raise LedgerContextRequiredError(operation)
    return ctx


def _in_range(
    moment: datetime, start_date: datetime | None, end_date: datetime | None
) -> bool:
    if start_date is not None and moment < start_date:
        return False
    if end_date is not None and moment > end_date:
        return False
    return True


class InMemoryLedgerStore(ILedgerStore):
    """Dict-backed movement log and transaction storage."""

    def __init__(self) -> None:
        self._movements: dict[str, list[StockMovement]] = {}
        self._transactions: dict[int, StockTransaction] = {}
        self._movement_ids = itertools.count(1)
        self._transaction_ids = itertools.count(1)
        self._item_ids = itertools.count(1)
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[MemoryWriteScope]:
        """Open a write scope; one at a time per store."""
        async with self._write_lock:
            scope = MemoryWriteScope()
            try:
                yield scope
            except BaseException:
                logger.debug(
                    "ledger_scope_discarded",
                    movements=len(scope.movements),
                    transactions=len(scope.transactions),
                )
                raise
            else:
                self._commit(scope)

    def _commit(self, scope: MemoryWriteScope) -> None:
        for movement in scope.movements:
            self._movements.setdefault(movement.product_id, []).append(movement)
        for txn in scope.transactions:
            self._transactions[txn.id] = txn

    def _visible_movements(
        self, product_id: str, ctx: MemoryWriteScope | None
    ) -> list[StockMovement]:
        movements = list(self._movements.get(product_id, []))
        if ctx is not None:
            movements.extend(m for m in ctx.movements if m.product_id == product_id)
        return movements

    # ------------------------------------------------------------------
    # Movement reads
    # ------------------------------------------------------------------

    async def get_latest_movement(
        self, product_id: str, ctx: MemoryWriteScope | None = None
    ) -> StockMovement | None:
        movements = self._visible_movements(product_id, ctx)
        if not movements:
            return None
        return max(movements, key=ledger_order_key)

    async def get_latest_movements(
        self, product_ids: list[str], ctx: MemoryWriteScope | None = None
    ) -> dict[str, StockMovement]:
        latest = {}
        for product_id in product_ids:
            movement = await self.get_latest_movement(product_id, ctx)
            if movement is not None:
                latest[product_id] = movement
        return latest

    async def list_movements(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[StockMovement]:
        movements = sorted(
            (
                m
                for m in self._movements.get(product_id, [])
                if _in_range(m.created_at, start_date, end_date)
            ),
            key=ledger_order_key,
            reverse=newest_first,
        )
        end = None if limit is None else offset + limit
        return movements[offset:end]

    async def count_movements(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> int:
        return sum(
            1
            for m in self._movements.get(product_id, [])
            if _in_range(m.created_at, start_date, end_date)
        )

    async def count_movements_by_product(
        self, product_ids: list[str]
    ) -> dict[str, int]:
        return {pid: len(self._movements.get(pid, [])) for pid in product_ids}

    # ------------------------------------------------------------------
    # Appends
    # ------------------------------------------------------------------

    async def append_movement(
        self, draft: StockMovementDraft, ctx: MemoryWriteScope
    ) -> StockMovement:
        scope = _require_scope(ctx, "append_movement")
        movement = StockMovement(
            **draft.model_dump(), id=next(self._movement_ids), created_at=utcnow()
        )
        scope.movements.append(movement)
        logger.debug(
            "stock_movement_appended",
            movement_id=movement.id,
            product_id=movement.product_id,
            type=movement.movement_type.value,
            change=movement.quantity_change,
            after=movement.quantity_after,
        )
        return movement

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def create_transaction(
        self, transaction: StockTransaction, ctx: MemoryWriteScope
    ) -> StockTransaction:
        scope = _require_scope(ctx, "create_transaction")
        transaction.id = next(self._transaction_ids)
        for item in transaction.items:
            item.id = next(self._item_ids)
        scope.transactions.append(transaction.model_copy(deep=True))
        logger.info(
            "stock_transaction_created",
            transaction_id=transaction.id,
            reference=transaction.reference_number,
            type=transaction.type.value,
            items=len(transaction.items),
        )
        return transaction

    async def get_transaction(self, transaction_id: int) -> StockTransaction | None:
        txn = self._transactions.get(transaction_id)
        return txn.model_copy(deep=True) if txn is not None else None

    def _matching_transactions(
        self,
        movement_type: MovementType | None,
        supplier_id: str | None,
        product_id: str | None,
        start_date: date | None,
        end_date: date | None,
    ) -> list[StockTransaction]:
        matches = []
        for txn in self._transactions.values():
            if movement_type is not None and txn.type != movement_type:
                continue
            if supplier_id is not None and txn.supplier_id != supplier_id:
                continue
            if product_id is not None and all(
                item.product_id != product_id for item in txn.items
            ):
                continue
            if start_date is not None and txn.transaction_date < start_date:
                continue
            if end_date is not None and txn.transaction_date > end_date:
                continue
            matches.append(txn)
        return matches

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
        matches = self._matching_transactions(
            movement_type, supplier_id, product_id, start_date, end_date
        )
        matches.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [t.model_copy(deep=True) for t in matches[offset : offset + limit]]

    async def count_transactions(
        self,
        movement_type: MovementType | None = None,
        supplier_id: str | None = None,
        product_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> int:
        return len(
            self._matching_transactions(
                movement_type, supplier_id, product_id, start_date, end_date
            )
        )

    async def list_transaction_movements(
        self, transaction_id: int
    ) -> list[StockMovement]:
        return sorted(
            (
                m
                for movements in self._movements.values()
                for m in movements
                if m.transaction_id == transaction_id
            ),
            key=ledger_order_key,
        )

    async def last_reference_number(
        self, prefix: str, ctx: MemoryWriteScope | None = None
    ) -> str | None:
        references = [t.reference_number for t in self._transactions.values()]
        if ctx is not None:
            references.extend(t.reference_number for t in ctx.transactions)
        matching = [ref for ref in references if ref.startswith(prefix)]
        return max(matching, default=None)
