"""
Stock calculation engine.

Derives stock levels from the append-only movement log and provides:
- quantity-change normalization per movement type
- current stock lookups (single and batch), inside or outside a write scope
- availability validation for debits
- movement drafting for a transaction's line items
- running balances for the stock card
- physical-count adjustment calculations
- read-only integrity audits of a product's ledger

The engine holds no state between calls. Pure service: the stores are
injected via constructor.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from src.config import get_logger
from src.core.entities.ledger import (
    AdjustmentType,
    AvailabilityError,
    AvailabilityResult,
    BatchAdjustmentResult,
    BatchAdjustmentSummary,
    IntegrityIssue,
    IntegrityIssueType,
    IntegrityReport,
    MovementHistoryPage,
    PhysicalCount,
    RunningBalanceEntry,
    StockAdjustment,
    StockLevel,
    StockSummaryItem,
)
from src.core.entities.product import Product
from src.core.entities.stock import (
    MovementType,
    StockLineItem,
    StockMovement,
    StockMovementDraft,
    as_ledger_time,
    ledger_order_key,
)
from src.core.exceptions import (
    ConfigurationError,
    LedgerContextRequiredError,
    StockValidationError,
    UnknownMovementTypeError,
)
from src.core.interfaces.ledger_store import ILedgerStore, LedgerScope
from src.core.interfaces.product_store import IProductStore

logger = get_logger(__name__)

# Movement types whose change is always positive
CREDIT_TYPES = frozenset({MovementType.IN, MovementType.RETURN_IN})

# Movement types whose change is always negative
DEBIT_TYPES = frozenset({MovementType.OUT, MovementType.RETURN_OUT})


def _coerce_movement_type(movement_type: Any) -> MovementType:
    try:
        return MovementType(movement_type)
    except (ValueError, TypeError):
        raise UnknownMovementTypeError(movement_type) from None


class StockCalculationEngine:
    """
    Stock ledger engine.

    Current stock of a product is the quantity_after of its latest
    movement, or 0 without history. It is never stored anywhere else.
    """

    def __init__(
        self,
        ledger_store: ILedgerStore,
        product_store: IProductStore | None = None,
        allow_negative_adjustments: bool = True,
    ) -> None:
        self._ledger_store = ledger_store
        self._product_store = product_store
        self._allow_negative_adjustments = allow_negative_adjustments

    # ------------------------------------------------------------------
    # Quantity changes
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_quantity_change(movement_type: MovementType | str, quantity: int) -> int:
        """
        Normalize a line quantity into the signed change for a movement type.

        IN/RETURN_IN are always positive, OUT/RETURN_OUT always negative,
        ADJUST keeps the caller's sign.

        Raises:
            UnknownMovementTypeError: movement_type is not a MovementType.
        """
        mt = _coerce_movement_type(movement_type)
        if mt in CREDIT_TYPES:
            return abs(quantity)
        if mt in DEBIT_TYPES:
            return -abs(quantity)
        return quantity

    # ------------------------------------------------------------------
    # Current stock
    # ------------------------------------------------------------------

    async def get_current_stock(
        self, product_id: str, ctx: LedgerScope | None = None
    ) -> int:
        """
        Current stock of a product.

        Pass the open write scope as ctx to see movements appended earlier
        in the same scope.
        """
        latest = await self._ledger_store.get_latest_movement(product_id, ctx)
        return latest.quantity_after if latest is not None else 0

    async def get_current_stock_levels(
        self, product_ids: Sequence[str], ctx: LedgerScope | None = None
    ) -> dict[str, int]:
        """Current stock for several products; every requested id is a key."""
        unique_ids = list(dict.fromkeys(product_ids))
        if not unique_ids:
            return {}
        latest = await self._ledger_store.get_latest_movements(unique_ids, ctx)
        return {
            pid: latest[pid].quantity_after if pid in latest else 0
            for pid in unique_ids
        }

    # ------------------------------------------------------------------
    # Availability and movement drafting
    # ------------------------------------------------------------------

    async def validate_stock_availability(
        self,
        items: Sequence[StockLineItem],
        movement_type: MovementType | str,
        ctx: LedgerScope | None = None,
        allow_negative: bool = False,
    ) -> AvailabilityResult:
        """
        Check that every debit line can be covered by available stock.

        Lines are checked against a per-product running balance seeded from
        current stock, so a product repeated within the batch only gets what
        its earlier lines left over. Every failing line is reported.
        """
        mt = _coerce_movement_type(movement_type)
        if mt in CREDIT_TYPES or allow_negative:
            return AvailabilityResult(valid=True)

        balances = await self.get_current_stock_levels(
            [item.product_id for item in items], ctx
        )

        errors: list[AvailabilityError] = []
        for item in items:
            available = balances[item.product_id]
            change = self.calculate_quantity_change(mt, item.quantity)
            balances[item.product_id] = available + change

            # Credit lines (a positive ADJUST) never fail
            if change > 0:
                continue

            requested = -change
            if requested > available:
                errors.append(
                    AvailabilityError(
                        product_id=item.product_id,
                        current_stock=available,
                        requested_quantity=requested,
                        shortfall=requested - available,
                        message=(
                            f"Insufficient stock for product {item.product_id}. "
                            f"Available: {available}, Requested: {requested}"
                        ),
                    )
                )

        if errors:
            logger.info(
                "stock_availability_rejected",
                movement_type=mt.value,
                failing_lines=len(errors),
            )

        return AvailabilityResult(valid=not errors, errors=errors)

    async def calculate_stock_movements(
        self,
        items: Sequence[StockLineItem],
        movement_type: MovementType | str,
        transaction_id: int,
        ctx: LedgerScope | None = None,
    ) -> list[StockMovementDraft]:
        """
        Draft one movement per line item without persisting anything.

        Balances are threaded through an explicit per-product accumulator,
        so repeated products chain their before/after values. Availability
        is assumed to have been validated already.
        """
        mt = _coerce_movement_type(movement_type)
        balances = await self.get_current_stock_levels(
            [item.product_id for item in items], ctx
        )

        drafts: list[StockMovementDraft] = []
        for item in items:
            before = balances[item.product_id]
            change = self.calculate_quantity_change(mt, item.quantity)
            after = before + change
            balances[item.product_id] = after

            drafts.append(
                StockMovementDraft(
                    product_id=item.product_id,
                    transaction_id=transaction_id,
                    movement_type=mt,
                    quantity_before=before,
                    quantity_change=change,
                    quantity_after=after,
                )
            )

        return drafts

    async def process_stock_movements(
        self,
        items: Sequence[StockLineItem],
        movement_type: MovementType | str,
        transaction_id: int,
        ctx: LedgerScope,
        allow_negative: bool | None = None,
    ) -> list[StockMovement]:
        """
        Draft, validate and append a transaction's movements.

        Must run inside an open write scope so the appends commit (or roll
        back) together with the transaction record.

        Raises:
            LedgerContextRequiredError: ctx is None.
            StockValidationError: a debit line exceeds available stock.
        """
        if ctx is None:
            raise LedgerContextRequiredError("process_stock_movements")

        mt = _coerce_movement_type(movement_type)
        if allow_negative is None:
            allow_negative = mt == MovementType.ADJUST and self._allow_negative_adjustments

        drafts = await self.calculate_stock_movements(items, mt, transaction_id, ctx)

        validation = await self.validate_stock_availability(
            items, mt, ctx, allow_negative=allow_negative
        )
        if not validation.valid:
            raise StockValidationError([e.model_dump() for e in validation.errors])

        movements = []
        for draft in drafts:
            movements.append(await self._ledger_store.append_movement(draft, ctx))

        logger.info(
            "stock_movements_processed",
            transaction_id=transaction_id,
            movement_type=mt.value,
            count=len(movements),
        )
        return movements

    # ------------------------------------------------------------------
    # History and running balances
    # ------------------------------------------------------------------

    async def get_stock_movement_history(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> MovementHistoryPage:
        """
        Newest-first page of movements; the date range needs both bounds.

        Aware bounds are converted to naive UTC, the form the ledger stores.
        """
        if start_date is None or end_date is None:
            start_date = end_date = None
        else:
            start_date, end_date = as_ledger_time(start_date), as_ledger_time(end_date)

        movements = await self._ledger_store.list_movements(
            product_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
            newest_first=True,
        )
        total = await self._ledger_store.count_movements(
            product_id, start_date=start_date, end_date=end_date
        )
        return MovementHistoryPage(
            movements=movements, total=total, limit=limit, offset=offset
        )

    @staticmethod
    def calculate_running_balances(
        movements: Sequence[StockMovement],
    ) -> list[RunningBalanceEntry]:
        """
        Recompute balances from zero over one product's movements.

        Input order does not matter: movements are sorted by
        (created_at, id) first. Each entry is flagged with whether the
        recomputed balance matches its recorded quantity_after.
        """
        running_balance = 0
        entries: list[RunningBalanceEntry] = []
        for movement in sorted(movements, key=ledger_order_key):
            running_balance += movement.quantity_change
            entries.append(
                RunningBalanceEntry(
                    **movement.model_dump(exclude={"running_balance", "balance_verified"}),
                    running_balance=running_balance,
                    balance_verified=running_balance == movement.quantity_after,
                )
            )
        return entries

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------

    @staticmethod
    def _classify_adjustment(
        product_id: str, current_stock: int, actual_stock: int
    ) -> StockAdjustment:
        difference = actual_stock - current_stock
        if difference > 0:
            adjustment_type = AdjustmentType.INCREASE
        elif difference < 0:
            adjustment_type = AdjustmentType.DECREASE
        else:
            adjustment_type = AdjustmentType.NO_CHANGE

        return StockAdjustment(
            product_id=product_id,
            current_stock=current_stock,
            actual_stock=actual_stock,
            difference=difference,
            adjustment_type=adjustment_type,
            adjustment_quantity=abs(difference),
        )

    async def calculate_stock_adjustment(
        self,
        product_id: str,
        actual_stock: int,
        ctx: LedgerScope | None = None,
    ) -> StockAdjustment:
        """Compare a physical count with derived stock. Creates nothing."""
        current_stock = await self.get_current_stock(product_id, ctx)
        return self._classify_adjustment(product_id, current_stock, actual_stock)

    async def calculate_batch_stock_adjustments(
        self,
        counts: Sequence[PhysicalCount],
        ctx: LedgerScope | None = None,
    ) -> BatchAdjustmentResult:
        """Adjustment calculation for several physical counts, plus a summary."""
        levels = await self.get_current_stock_levels(
            [count.product_id for count in counts], ctx
        )
        adjustments = [
            self._classify_adjustment(c.product_id, levels[c.product_id], c.actual_stock)
            for c in counts
        ]

        summary = BatchAdjustmentSummary(total_adjustments=len(adjustments))
        for adj in adjustments:
            if adj.adjustment_type == AdjustmentType.INCREASE:
                summary.increases += 1
                summary.total_increase_quantity += adj.adjustment_quantity
            elif adj.adjustment_type == AdjustmentType.DECREASE:
                summary.decreases += 1
                summary.total_decrease_quantity += adj.adjustment_quantity
            else:
                summary.no_changes += 1

        return BatchAdjustmentResult(adjustments=adjustments, summary=summary)

    # ------------------------------------------------------------------
    # Integrity audit
    # ------------------------------------------------------------------

    async def verify_stock_movement_integrity(self, product_id: str) -> IntegrityReport:
        """
        Audit a product's ledger. Read-only; never repairs anything.

        Checks, for each movement in ledger order:
        1. BALANCE_MISMATCH: quantity_before equals the previous
           quantity_after (0 for the first movement).
        2. CALCULATION_ERROR: quantity_after equals
           quantity_before + quantity_change.
        """
        movements = sorted(
            await self._ledger_store.list_movements(product_id),
            key=ledger_order_key,
        )

        if not movements:
            return IntegrityReport(
                valid=True,
                product_id=product_id,
                message="No movements found for product",
            )

        errors: list[IntegrityIssue] = []
        expected_balance = 0

        for position, movement in enumerate(movements, start=1):
            if movement.quantity_before != expected_balance:
                errors.append(
                    IntegrityIssue(
                        movement_id=movement.id,
                        issue=IntegrityIssueType.BALANCE_MISMATCH,
                        expected=expected_balance,
                        actual=movement.quantity_before,
                        message=(
                            f"Movement {position}: quantity_before "
                            f"({movement.quantity_before}) doesn't match "
                            f"expected balance ({expected_balance})"
                        ),
                    )
                )

            calculated_after = movement.quantity_before + movement.quantity_change
            if movement.quantity_after != calculated_after:
                errors.append(
                    IntegrityIssue(
                        movement_id=movement.id,
                        issue=IntegrityIssueType.CALCULATION_ERROR,
                        expected=calculated_after,
                        actual=movement.quantity_after,
                        message=f"Movement {position}: quantity_after calculation error",
                    )
                )

            expected_balance = movement.quantity_after

        if errors:
            logger.warning(
                "stock_integrity_check_failed",
                product_id=product_id,
                issues=len(errors),
            )

        return IntegrityReport(
            valid=not errors,
            product_id=product_id,
            total_movements=len(movements),
            final_balance=expected_balance,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Product-level reporting
    # ------------------------------------------------------------------

    def _require_product_store(self) -> IProductStore:
        if self._product_store is None:
            raise ConfigurationError("A product store is required for stock reports")
        return self._product_store

    async def get_stock_summary(
        self,
        include_zero_stock: bool = True,
        only_low_stock: bool = False,
        category: str | None = None,
    ) -> list[StockSummaryItem]:
        """Current stock, low-stock flag and movement count per product."""
        store = self._require_product_store()
        products = await store.list_products(limit=None, category=category)
        ids = [p.id for p in products]
        latest = await self._ledger_store.get_latest_movements(ids) if ids else {}
        counts = await self._ledger_store.count_movements_by_product(ids) if ids else {}

        summary = []
        for product in products:
            movement = latest.get(product.id)
            current_stock = movement.quantity_after if movement else 0
            summary.append(
                StockSummaryItem(
                    product_id=product.id,
                    sku=product.sku,
                    brand=product.brand,
                    name=product.name,
                    category=product.category,
                    unit=product.unit,
                    current_stock=current_stock,
                    minimum_stock=product.minimum_stock,
                    is_low_stock=product.is_low_stock(current_stock),
                    last_movement_date=movement.created_at if movement else None,
                    total_movements=counts.get(product.id, 0),
                )
            )

        if not include_zero_stock:
            summary = [item for item in summary if item.current_stock > 0]
        if only_low_stock:
            summary = [item for item in summary if item.is_low_stock]

        return summary

    async def get_real_time_stock_levels(
        self, product_ids: Sequence[str] | None = None
    ) -> list[StockLevel]:
        """Lightweight stock levels for dashboards, all products by default."""
        store = self._require_product_store()
        products: list[Product]
        if product_ids is None:
            products = await store.list_products(limit=None)
        else:
            products = await store.get_products(list(product_ids))

        ids = [p.id for p in products]
        latest = await self._ledger_store.get_latest_movements(ids) if ids else {}

        levels = []
        for product in products:
            movement = latest.get(product.id)
            current_stock = movement.quantity_after if movement else 0
            levels.append(
                StockLevel(
                    product_id=product.id,
                    sku=product.sku,
                    name=product.name,
                    unit=product.unit,
                    current_stock=current_stock,
                    minimum_stock=product.minimum_stock,
                    is_low_stock=product.is_low_stock(current_stock),
                    last_updated=movement.created_at if movement else None,
                )
            )
        return levels
