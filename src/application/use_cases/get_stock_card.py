"""Get Stock Card Use Case: movement history with verified running balances."""

from dataclasses import dataclass
from datetime import datetime

from src.application.dto.responses import (
    ProductResponse,
    StockCardEntryResponse,
    StockCardResponse,
)
from src.config import get_logger
from src.core.entities.ledger import MovementHistoryPage, RunningBalanceEntry
from src.core.entities.product import Product
from src.core.exceptions import ProductNotFoundError
from src.core.interfaces.ledger_store import ILedgerStore
from src.core.interfaces.product_store import IProductStore
from src.core.services.stock_calculation import StockCalculationEngine

logger = get_logger(__name__)


@dataclass
class StockCardResult:
    product: Product
    current_stock: int
    page: MovementHistoryPage
    entries: list[RunningBalanceEntry]


class GetStockCardUseCase:
    """Build the stock card of one product."""

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

    async def execute(
        self,
        product_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> StockCardResult:
        """Execute get stock card use case."""
        product = await (await self._get_product_store()).get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        ledger = await self._get_ledger_store()
        engine = await self._get_engine()

        page = await engine.get_stock_movement_history(
            product_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )

        # Balances are recomputed over the whole history, then matched to the page
        balances = {
            entry.id: entry
            for entry in engine.calculate_running_balances(
                await ledger.list_movements(product_id)
            )
        }
        entries = [balances[m.id] for m in page.movements if m.id in balances]

        unverified = sum(1 for e in entries if not e.balance_verified)
        if unverified:
            logger.warning(
                "stock_card_unverified_balances",
                product_id=product_id,
                count=unverified,
            )

        return StockCardResult(
            product=product,
            current_stock=await engine.get_current_stock(product_id),
            page=page,
            entries=entries,
        )

    def to_response(self, result: StockCardResult) -> StockCardResponse:
        """Convert result to API response."""
        return StockCardResponse(
            product=ProductResponse.model_validate(result.product),
            current_stock=result.current_stock,
            entries=[StockCardEntryResponse.model_validate(e) for e in result.entries],
            total=result.page.total,
            limit=result.page.limit,
            offset=result.page.offset,
            has_more=result.page.has_more,
        )
