"""Stock Adjustment Use Case: reconcile a physical count with the ledger."""

from dataclasses import dataclass, field
from datetime import date

from src.application.dto.requests import StockAdjustmentRequest
from src.application.dto.responses import (
    AdjustmentSummaryResponse,
    StockAdjustmentLineResponse,
    StockAdjustmentResponse,
    StockMovementResponse,
    TransactionResponse,
)
from src.application.use_cases.create_transaction import (
    ensure_products_exist,
    next_reference_number,
)
from src.config import get_logger, get_settings
from src.core.entities.ledger import BatchAdjustmentResult, PhysicalCount
from src.core.entities.stock import MovementType, StockMovement
from src.core.entities.transaction import StockTransaction, TransactionItem
from src.core.exceptions import ValidationError
from src.core.interfaces.ledger_store import ILedgerStore
from src.core.interfaces.product_store import IProductStore
from src.core.services.stock_calculation import StockCalculationEngine

logger = get_logger(__name__)


@dataclass
class StockAdjustmentResult:
    """Result of a physical count; transaction is None when nothing changed."""

    batch: BatchAdjustmentResult
    transaction: StockTransaction | None = None
    movements: list[StockMovement] = field(default_factory=list)


class StockAdjustmentUseCase:
    """
    Turn a physical count into one ADJUST transaction.

    Each counted product whose ledger stock differs gets a line carrying the
    signed difference, so after commit its derived stock equals the count.
    """

    def __init__(
        self,
        ledger_store: ILedgerStore | None = None,
        product_store: IProductStore | None = None,
        engine: StockCalculationEngine | None = None,
    ):
        self._ledger_store = ledger_store
        self._product_store = product_store
        self._engine = engine

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from src.infrastructure.storage import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from src.infrastructure.storage import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _get_engine(self) -> StockCalculationEngine:
        if self._engine is None:
            from src.application.services import get_stock_engine

            self._engine = await get_stock_engine(
                ledger_store=await self._get_ledger_store(),
                product_store=await self._get_product_store(),
            )
        return self._engine

    async def _validate_counts(self, request: StockAdjustmentRequest) -> list[PhysicalCount]:
        seen: set[str] = set()
        for count in request.counts:
            if count.product_id in seen:
                raise ValidationError(
                    "counts", "Product counted more than once", count.product_id
                )
            seen.add(count.product_id)

        await ensure_products_exist(await self._get_product_store(), list(seen))
        return [
            PhysicalCount(product_id=c.product_id, actual_stock=c.actual_stock)
            for c in request.counts
        ]

    async def preview(self, request: StockAdjustmentRequest) -> StockAdjustmentResult:
        """Compute the adjustments without writing anything."""
        counts = await self._validate_counts(request)
        engine = await self._get_engine()
        return StockAdjustmentResult(
            batch=await engine.calculate_batch_stock_adjustments(counts)
        )

    async def execute(self, request: StockAdjustmentRequest) -> StockAdjustmentResult:
        """Execute stock adjustment use case."""
        counts = await self._validate_counts(request)
        logger.info("stock_adjustment_started", counts=len(counts))

        ledger = await self._get_ledger_store()
        engine = await self._get_engine()
        settings = get_settings()

        async with ledger.transaction() as scope:
            batch = await engine.calculate_batch_stock_adjustments(counts, scope)
            items = [
                TransactionItem(product_id=adj.product_id, quantity=adj.difference)
                for adj in batch.adjustments
                if adj.difference != 0
            ]
            if not items:
                logger.info("stock_adjustment_no_changes", counts=len(counts))
                return StockAdjustmentResult(batch=batch)

            reference = await next_reference_number(
                ledger, scope, settings.ledger.reference_prefix
            )
            transaction = await ledger.create_transaction(
                StockTransaction(
                    reference_number=reference,
                    type=MovementType.ADJUST,
                    transaction_date=date.today(),
                    user_id=request.user_id,
                    notes=request.notes or "Physical stock count",
                    items=items,
                ),
                scope,
            )
            # Differences land exactly on the counted stock, never below zero
            movements = await engine.process_stock_movements(
                items,
                MovementType.ADJUST,
                transaction.id,  # type: ignore[arg-type]
                scope,
                allow_negative=True,
            )

        logger.info(
            "stock_adjustment_complete",
            transaction_id=transaction.id,
            increases=batch.summary.increases,
            decreases=batch.summary.decreases,
        )
        return StockAdjustmentResult(
            batch=batch, transaction=transaction, movements=movements
        )

    def to_response(self, result: StockAdjustmentResult) -> StockAdjustmentResponse:
        """Convert result to API response."""
        transaction = None
        if result.transaction is not None:
            transaction = TransactionResponse.model_validate(result.transaction)
            transaction.movements = [
                StockMovementResponse.model_validate(m) for m in result.movements
            ]

        return StockAdjustmentResponse(
            adjustments=[
                StockAdjustmentLineResponse.model_validate(a)
                for a in result.batch.adjustments
            ],
            summary=AdjustmentSummaryResponse.model_validate(result.batch.summary),
            transaction=transaction,
        )
