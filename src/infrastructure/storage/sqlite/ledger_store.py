"""
SQLite implementation of the stock ledger.

Movements live in an append-only table (UPDATE/DELETE are rejected by
triggers). A write scope is one BEGIN IMMEDIATE transaction on a pooled
connection; that connection is the scope handle passed around as ctx.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.stock import (
    MovementType,
    StockMovement,
    StockMovementDraft,
    utcnow,
)
from src.core.entities.transaction import StockTransaction, TransactionItem
from src.core.interfaces.ledger_store import ILedgerStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


def _ts(value: datetime) -> str:
    # Fixed-width ISO text so lexical order matches chronological order
    return value.isoformat(timespec="microseconds")


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class SQLiteLedgerStore(ILedgerStore):
    """SQLite implementation of stock movement and transaction storage."""

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a write scope holding SQLite's write lock until exit."""
        async with get_transaction(immediate=True) as conn:
            yield conn

    @asynccontextmanager
    async def _reader(
        self, ctx: aiosqlite.Connection | None
    ) -> AsyncIterator[aiosqlite.Connection]:
        """Read through the open scope if given, else a pooled connection."""
        if ctx is not None:
            yield ctx
            return
        async with get_connection() as conn:
            yield conn

    # ------------------------------------------------------------------
    # Movement reads
    # ------------------------------------------------------------------

    async def get_latest_movement(
        self, product_id: str, ctx: aiosqlite.Connection | None = None
    ) -> StockMovement | None:
        """Get the most recent movement for a product."""
        async with self._reader(ctx) as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_movements
                WHERE product_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (product_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_movement(row)

    async def get_latest_movements(
        self, product_ids: list[str], ctx: aiosqlite.Connection | None = None
    ) -> dict[str, StockMovement]:
        """Latest movement per product in one query."""
        if not product_ids:
            return {}
        async with self._reader(ctx) as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM (
                    SELECT m.*, ROW_NUMBER() OVER (
                        PARTITION BY m.product_id
                        ORDER BY m.created_at DESC, m.id DESC
                    ) AS rn
                    FROM stock_movements m
                    WHERE m.product_id IN ({_placeholders(len(product_ids))})
                )
                WHERE rn = 1
                """,
                tuple(product_ids),
            )
            rows = await cursor.fetchall()
            return {row["product_id"]: self._row_to_movement(row) for row in rows}

    async def list_movements(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[StockMovement]:
        """List a product's movements in ledger order."""
        query = "SELECT * FROM stock_movements WHERE product_id = ?"
        params: list = [product_id]

        if start_date is not None:
            query += " AND created_at >= ?"
            params.append(_ts(start_date))
        if end_date is not None:
            query += " AND created_at <= ?"
            params.append(_ts(end_date))

        direction = "DESC" if newest_first else "ASC"
        query += f" ORDER BY created_at {direction}, id {direction}"

        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        elif offset:
            query += " LIMIT -1 OFFSET ?"
            params.append(offset)

        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def count_movements(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> int:
        """Count a product's movements."""
        query = "SELECT COUNT(*) FROM stock_movements WHERE product_id = ?"
        params: list = [product_id]
        if start_date is not None:
            query += " AND created_at >= ?"
            params.append(_ts(start_date))
        if end_date is not None:
            query += " AND created_at <= ?"
            params.append(_ts(end_date))

        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def count_movements_by_product(
        self, product_ids: list[str]
    ) -> dict[str, int]:
        """Movement counts per product, zero for products without history."""
        counts = {pid: 0 for pid in product_ids}
        if not product_ids:
            return counts
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT product_id, COUNT(*) AS total
                FROM stock_movements
                WHERE product_id IN ({_placeholders(len(product_ids))})
                GROUP BY product_id
                """,
                tuple(product_ids),
            )
            for row in await cursor.fetchall():
                counts[row["product_id"]] = row["total"]
        return counts

    # ------------------------------------------------------------------
    # Appends
    # ------------------------------------------------------------------

    async def append_movement(
        self, draft: StockMovementDraft, ctx: aiosqlite.Connection
    ) -> StockMovement:
        """Insert one movement on the scope's connection; no commit here."""
        created_at = utcnow()
        cursor = await ctx.execute(
            """
            INSERT INTO stock_movements (
                product_id, transaction_id, movement_type,
                quantity_before, quantity_change, quantity_after, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                draft.product_id,
                draft.transaction_id,
                draft.movement_type.value,
                draft.quantity_before,
                draft.quantity_change,
                draft.quantity_after,
                _ts(created_at),
            ),
        )
        movement = StockMovement(
            **draft.model_dump(), id=cursor.lastrowid, created_at=created_at
        )
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
        self, transaction: StockTransaction, ctx: aiosqlite.Connection
    ) -> StockTransaction:
        """Insert a transaction header and its items on the scope's connection."""
        cursor = await ctx.execute(
            """
            INSERT INTO stock_transactions (
                reference_number, type, transaction_date, supplier_id,
                user_id, notes, total_value, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transaction.reference_number,
                transaction.type.value,
                transaction.transaction_date.isoformat(),
                transaction.supplier_id,
                transaction.user_id,
                transaction.notes,
                transaction.total_value,
                _ts(transaction.created_at),
            ),
        )
        transaction.id = cursor.lastrowid

        for item in transaction.items:
            item_cursor = await ctx.execute(
                """
                INSERT INTO transaction_items (
                    transaction_id, product_id, quantity, unit_cost, unit_price
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    transaction.id,
                    item.product_id,
                    item.quantity,
                    item.unit_cost,
                    item.unit_price,
                ),
            )
            item.id = item_cursor.lastrowid

        logger.info(
            "stock_transaction_created",
            transaction_id=transaction.id,
            reference=transaction.reference_number,
            type=transaction.type.value,
            items=len(transaction.items),
        )
        return transaction

    async def get_transaction(self, transaction_id: int) -> StockTransaction | None:
        """Get transaction by ID, with items."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_transactions WHERE id = ?", (transaction_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            items = await self._load_items(conn, [transaction_id])
            return self._row_to_transaction(row, items.get(transaction_id, []))

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
        """List transactions newest first, with optional filters."""
        where, params = self._transaction_filters(
            movement_type, supplier_id, product_id, start_date, end_date
        )
        query = f"SELECT * FROM stock_transactions t WHERE {where}"
        query += " ORDER BY t.created_at DESC, t.id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            items = await self._load_items(conn, [row["id"] for row in rows])
            return [
                self._row_to_transaction(row, items.get(row["id"], []))
                for row in rows
            ]

    async def count_transactions(
        self,
        movement_type: MovementType | None = None,
        supplier_id: str | None = None,
        product_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> int:
        """Count transactions matching the list filters."""
        where, params = self._transaction_filters(
            movement_type, supplier_id, product_id, start_date, end_date
        )
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM stock_transactions t WHERE {where}", params
            )
            row = await cursor.fetchone()
            return row[0] if row else 0

    @staticmethod
    def _transaction_filters(
        movement_type: MovementType | None,
        supplier_id: str | None,
        product_id: str | None,
        start_date: date | None,
        end_date: date | None,
    ) -> tuple[str, list]:
        clauses = ["1=1"]
        params: list = []

        if movement_type is not None:
            clauses.append("t.type = ?")
            params.append(movement_type.value)
        if supplier_id is not None:
            clauses.append("t.supplier_id = ?")
            params.append(supplier_id)
        if product_id is not None:
            clauses.append(
                "EXISTS (SELECT 1 FROM transaction_items i"
                " WHERE i.transaction_id = t.id AND i.product_id = ?)"
            )
            params.append(product_id)
        if start_date is not None:
            clauses.append("t.transaction_date >= ?")
            params.append(start_date.isoformat())
        if end_date is not None:
            clauses.append("t.transaction_date <= ?")
            params.append(end_date.isoformat())

        return " AND ".join(clauses), params

    async def list_transaction_movements(
        self, transaction_id: int
    ) -> list[StockMovement]:
        """Movements produced by one transaction."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_movements
                WHERE transaction_id = ?
                ORDER BY created_at, id
                """,
                (transaction_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def last_reference_number(
        self, prefix: str, ctx: aiosqlite.Connection | None = None
    ) -> str | None:
        """Highest reference number with the given prefix."""
        async with self._reader(ctx) as conn:
            cursor = await conn.execute(
                """
                SELECT reference_number FROM stock_transactions
                WHERE reference_number LIKE ?
                ORDER BY reference_number DESC
                LIMIT 1
                """,
                (f"{prefix}%",),
            )
            row = await cursor.fetchone()
            return row["reference_number"] if row else None

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    async def _load_items(
        conn: aiosqlite.Connection, transaction_ids: list[int]
    ) -> dict[int, list[TransactionItem]]:
        """Load line items for several transactions, keyed by transaction id."""
        if not transaction_ids:
            return {}
        cursor = await conn.execute(
            f"""
            SELECT * FROM transaction_items
            WHERE transaction_id IN ({_placeholders(len(transaction_ids))})
            ORDER BY id
            """,
            tuple(transaction_ids),
        )
        grouped: dict[int, list[TransactionItem]] = {}
        for row in await cursor.fetchall():
            grouped.setdefault(row["transaction_id"], []).append(
                TransactionItem(
                    id=row["id"],
                    product_id=row["product_id"],
                    quantity=row["quantity"],
                    unit_cost=row["unit_cost"],
                    unit_price=row["unit_price"],
                )
            )
        return grouped

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        return StockMovement(
            id=row["id"],
            product_id=row["product_id"],
            transaction_id=row["transaction_id"],
            movement_type=MovementType(row["movement_type"]),
            quantity_before=row["quantity_before"],
            quantity_change=row["quantity_change"],
            quantity_after=row["quantity_after"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_transaction(
        row: aiosqlite.Row, items: list[TransactionItem]
    ) -> StockTransaction:
        """Convert a database row plus its items to a StockTransaction."""
        return StockTransaction(
            id=row["id"],
            reference_number=row["reference_number"],
            type=MovementType(row["type"]),
            transaction_date=date.fromisoformat(row["transaction_date"]),
            supplier_id=row["supplier_id"],
            user_id=row["user_id"],
            notes=row["notes"],
            total_value=row["total_value"],
            items=items,
            created_at=datetime.fromisoformat(row["created_at"]),
        )
