"""Stock ledger endpoints: levels, stock card, adjustments and audits."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import (
    get_engine,
    get_products,
    get_stock_adjustment_use_case,
    get_stock_card_use_case,
)
from src.application.dto.requests import AvailabilityCheckRequest, StockAdjustmentRequest
from src.application.dto.responses import (
    AvailabilityResponse,
    CurrentStockResponse,
    ErrorResponse,
    IntegrityReportResponse,
    StockAdjustmentResponse,
    StockCardResponse,
    StockLevelResponse,
    StockLevelsResponse,
    StockSummaryItemResponse,
    StockSummaryResponse,
)
from src.application.use_cases import GetStockCardUseCase, StockAdjustmentUseCase
from src.core.entities.stock import StockLineItem
from src.core.exceptions import ProductNotFoundError
from src.core.interfaces import IProductStore
from src.core.services import StockCalculationEngine

router = APIRouter(prefix="/api/stock", tags=["stock"])


async def _require_product(store: IProductStore, product_id: str) -> None:
    if await store.get_product(product_id) is None:
        raise ProductNotFoundError(product_id)


@router.get("/levels", response_model=StockLevelsResponse)
async def get_stock_levels(
    product_ids: list[str] | None = Query(default=None),
    engine: StockCalculationEngine = Depends(get_engine),
) -> StockLevelsResponse:
    """Real-time stock levels, for all products or the given IDs."""
    levels = await engine.get_real_time_stock_levels(product_ids)
    return StockLevelsResponse(
        items=[StockLevelResponse.model_validate(level) for level in levels]
    )


@router.get("/summary", response_model=StockSummaryResponse)
async def get_stock_summary(
    include_zero_stock: bool = True,
    only_low_stock: bool = False,
    category: str | None = None,
    engine: StockCalculationEngine = Depends(get_engine),
) -> StockSummaryResponse:
    """Per-product stock report with low-stock flags."""
    items = await engine.get_stock_summary(
        include_zero_stock=include_zero_stock,
        only_low_stock=only_low_stock,
        category=category,
    )
    return StockSummaryResponse(
        items=[StockSummaryItemResponse.model_validate(item) for item in items],
        total_products=len(items),
        low_stock_count=sum(1 for item in items if item.is_low_stock),
    )


@router.post(
    "/adjustments",
    response_model=StockAdjustmentResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def apply_stock_adjustment(
    request: StockAdjustmentRequest,
    use_case: StockAdjustmentUseCase = Depends(get_stock_adjustment_use_case),
) -> StockAdjustmentResponse:
    """Reconcile a physical count; differing products get one ADJUST transaction."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/adjustments/preview",
    response_model=StockAdjustmentResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def preview_stock_adjustment(
    request: StockAdjustmentRequest,
    use_case: StockAdjustmentUseCase = Depends(get_stock_adjustment_use_case),
) -> StockAdjustmentResponse:
    """Compute what a physical count would change without writing anything."""
    result = await use_case.preview(request)
    return use_case.to_response(result)


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    request: AvailabilityCheckRequest,
    engine: StockCalculationEngine = Depends(get_engine),
) -> AvailabilityResponse:
    """Validate lines against current stock without recording anything."""
    result = await engine.validate_stock_availability(
        [StockLineItem(product_id=i.product_id, quantity=i.quantity) for i in request.items],
        request.type,
        allow_negative=request.allow_negative,
    )
    return AvailabilityResponse.model_validate(result)


@router.get(
    "/{product_id}",
    response_model=CurrentStockResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_current_stock(
    product_id: str,
    engine: StockCalculationEngine = Depends(get_engine),
    products: IProductStore = Depends(get_products),
) -> CurrentStockResponse:
    """Current stock derived from the product's latest movement."""
    await _require_product(products, product_id)
    return CurrentStockResponse(
        product_id=product_id,
        current_stock=await engine.get_current_stock(product_id),
    )


@router.get(
    "/{product_id}/card",
    response_model=StockCardResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_stock_card(
    product_id: str,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    use_case: GetStockCardUseCase = Depends(get_stock_card_use_case),
) -> StockCardResponse:
    """
    Stock card: movements newest first with verified running balances.

    The date range applies only when both bounds are given.
    """
    result = await use_case.execute(
        product_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return use_case.to_response(result)


@router.get(
    "/{product_id}/integrity",
    response_model=IntegrityReportResponse,
    responses={404: {"model": ErrorResponse}},
)
async def verify_integrity(
    product_id: str,
    engine: StockCalculationEngine = Depends(get_engine),
    products: IProductStore = Depends(get_products),
) -> IntegrityReportResponse:
    """Audit the product's movement chain. Read-only."""
    await _require_product(products, product_id)
    report = await engine.verify_stock_movement_integrity(product_id)
    return IntegrityReportResponse.model_validate(report)
