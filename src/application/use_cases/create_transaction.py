"""Create Stock Transaction Use Case: transaction header + ledger movements."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import CreateTransactionRequest
from src.application.dto.responses import StockMovementResponse, TransactionResponse
from src.config import get_logger, get_settings
from src.core.entities.stock import MovementType, StockMovement
from src.core.entities.transaction import StockTransaction, TransactionItem
from src.core.exceptions import ProductNotFoundError, StockValidationError
from src.core.interfaces.ledger_store import ILedgerStore, LedgerScope
from src.core.interfaces.product_store import IProductStore
from src.core.services.stock_calculation import StockCalculationEngine

logger = get_logger(__name__)


@dataclass
class CreateTransactionResult:
    """Result of creating a stock transaction."""

    transaction: StockTransaction
    movements: list[StockMovement]


async def ensure_products_exist(
    product_store: IProductStore, product_ids: Sequence[str]
) -> None:
    """Raise ProductNotFoundError for the first unknown product id."""
    unique_ids = list(dict.fromkeys(product_ids))
    found = {p.id for p in await product_store.get_products(unique_ids)}
    for product_id in unique_ids:
        if product_id not in found:
            raise ProductNotFoundError(product_id)


async def next_reference_number(
    ledger_store: ILedgerStore,
    ctx: LedgerScope,
    prefix: str,
    on: date | None = None,
) -> str:
    """
    Next reference number of the form PREFIX-YYYYMMDD-NNNN.

    The sequence restarts every day. Read through the open write scope so
    two transactions in flight cannot draw the same number.
    """
    day_prefix = f"{prefix}-{(on or date.today()):%Y%m%d}"
    last = await ledger_store.last_reference_number(day_prefix, ctx)

    sequence = 1
    if last:
        sequence = int(last.rsplit("-", 1)[1]) + 1

    return f"{day_prefix}-{sequence:04d}"


class CreateStockTransactionUseCase:
    """
    Record a stock transaction atomically.

    Availability check, transaction header, line items and ledger movements
    all happen inside one write scope: either everything commits or nothing
    does.
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

    async def execute(self, request: CreateTransactionRequest) -> CreateTransactionResult:
        """Execute create transaction use case."""
        logger.info(
            "create_transaction_started",
            type=request.type.value,
            items=len(request.items),
        )

        ledger = await self._get_ledger_store()
        products = await self._get_product_store()
        engine = await self._get_engine()
        settings = get_settings()

        # 1. Every line must reference a known product
        await ensure_products_exist(products, [item.product_id for item in request.items])

        items = [
            TransactionItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_cost=item.unit_cost,
                unit_price=item.unit_price,
            )
            for item in request.items
        ]
        allow_negative = (
            request.type == MovementType.ADJUST
            and settings.ledger.allow_negative_adjustments
        )

        async with ledger.transaction() as scope:
            # 2. Validate availability against balances inside the scope
            validation = await engine.validate_stock_availability(
                items, request.type, scope, allow_negative=allow_negative
            )
            if not validation.valid:
                logger.info(
                    "create_transaction_rejected",
                    type=request.type.value,
                    shortfalls=len(validation.errors),
                )
                raise StockValidationError([e.model_dump() for e in validation.errors])

            # 3. Header and items
            reference = await next_reference_number(
                ledger, scope, settings.ledger.reference_prefix
            )
            transaction = StockTransaction(
                reference_number=reference,
                type=request.type,
                transaction_date=request.transaction_date or date.today(),
                supplier_id=request.supplier_id,
                user_id=request.user_id,
                notes=request.notes,
                items=items,
            )
            transaction = await ledger.create_transaction(transaction, scope)

            # 4. Ledger movements
            movements = await engine.process_stock_movements(
                items,
                request.type,
                transaction.id,  # type: ignore[arg-type]
                scope,
                allow_negative=allow_negative,
            )

        logger.info(
            "create_transaction_complete",
            transaction_id=transaction.id,
            reference=transaction.reference_number,
            movements=len(movements),
        )

        return CreateTransactionResult(transaction=transaction, movements=movements)

    def to_response(self, result: CreateTransactionResult) -> TransactionResponse:
        """Convert result to API response."""
        response = TransactionResponse.model_validate(result.transaction)
        response.movements = [
            StockMovementResponse.model_validate(m) for m in result.movements
        ]
        return response
