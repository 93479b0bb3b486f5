"""Stock transaction endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_create_transaction_use_case, get_ledger
from src.application.dto.requests import CreateTransactionRequest
from src.application.dto.responses import (
    ErrorResponse,
    StockMovementResponse,
    TransactionListResponse,
    TransactionResponse,
)
from src.application.use_cases import CreateStockTransactionUseCase
from src.core.entities.stock import MovementType
from src.core.exceptions import TransactionNotFoundError
from src.core.interfaces import ILedgerStore

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def create_transaction(
    request: CreateTransactionRequest,
    use_case: CreateStockTransactionUseCase = Depends(get_create_transaction_use_case),
) -> TransactionResponse:
    """
    Record a stock transaction and append its ledger movements.

    Debit types are rejected with 400 INSUFFICIENT_STOCK when any line
    exceeds available stock; every failing line is listed in `errors`.
    """
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    type: MovementType | None = None,
    supplier_id: str | None = None,
    product_id: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    store: ILedgerStore = Depends(get_ledger),
) -> TransactionListResponse:
    """List transactions newest first."""
    filters = {
        "movement_type": type,
        "supplier_id": supplier_id,
        "product_id": product_id,
        "start_date": start_date,
        "end_date": end_date,
    }
    transactions = await store.list_transactions(**filters, limit=limit, offset=offset)
    total = await store.count_transactions(**filters)

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + limit < total,
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_transaction(
    transaction_id: int,
    store: ILedgerStore = Depends(get_ledger),
) -> TransactionResponse:
    """Get a transaction with its items and the movements it produced."""
    transaction = await store.get_transaction(transaction_id)
    if transaction is None:
        raise TransactionNotFoundError(transaction_id)

    response = TransactionResponse.model_validate(transaction)
    response.movements = [
        StockMovementResponse.model_validate(m)
        for m in await store.list_transaction_movements(transaction_id)
    ]
    return response
