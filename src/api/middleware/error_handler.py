"""
Translate exceptions into the API's JSON error envelope.

Every error body carries error_code, message, hint and path; a rejected
transaction also carries ``errors``, one entry per short line.
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    ConfigurationError,
    DuplicateProductError,
    LedgerContextRequiredError,
    ProductNotFoundError,
    StockLedgerError,
    StockValidationError,
    StorageError,
    TransactionNotFoundError,
    UnknownMovementTypeError,
    ValidationError,
)

logger = get_logger(__name__)

# Checked in order, so subclasses sit above their bases
_ERROR_TABLE: list[tuple[type[Exception], int, str]] = [
    (
        StockValidationError,
        status.HTTP_400_BAD_REQUEST,
        "Reduce the quantities or receive stock first; errors lists each short line.",
    ),
    (
        UnknownMovementTypeError,
        status.HTTP_400_BAD_REQUEST,
        "Use one of IN, OUT, ADJUST, RETURN_IN, RETURN_OUT.",
    ),
    (
        ValidationError,
        status.HTTP_400_BAD_REQUEST,
        "Check the request body against the API schema.",
    ),
    (
        ProductNotFoundError,
        status.HTTP_404_NOT_FOUND,
        "GET /api/products lists the registered products.",
    ),
    (
        TransactionNotFoundError,
        status.HTTP_404_NOT_FOUND,
        "GET /api/transactions lists recorded transactions.",
    ),
    (
        DuplicateProductError,
        status.HTTP_409_CONFLICT,
        "Pick a product id and SKU that are not registered yet.",
    ),
    (
        LedgerContextRequiredError,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "A ledger write ran outside its write scope. Check server logs.",
    ),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Storage failed. Check server logs."),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Check the STORAGE_ and LEDGER_ settings."),
    (ValueError, status.HTTP_400_BAD_REQUEST, "A parameter value is invalid."),
]

_FALLBACK_HINTS = {
    404: "No such resource.",
    405: "The method is not allowed on this path.",
    500: "Unexpected server error. Check server logs.",
}


def _classify(exc: Exception) -> tuple[int, str]:
    for exc_type, code, hint in _ERROR_TABLE:
        if isinstance(exc, exc_type):
            return code, hint
    return status.HTTP_500_INTERNAL_SERVER_ERROR, _FALLBACK_HINTS[500]


def _envelope(status_code: int, request: Request, **fields) -> JSONResponse:
    body = ErrorResponse(path=request.url.path, **fields)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Map a raised exception to its status code and error envelope."""
    status_code, hint = _classify(exc)
    if isinstance(exc, StockLedgerError):
        error_code, message = exc.code, exc.message
    else:
        error_code, message = type(exc).__name__, str(exc)

    server_fault = status_code >= 500
    (logger.error if server_fault else logger.info)(
        "request_failed",
        request_id=getattr(request.state, "request_id", None),
        error_code=error_code,
        status_code=status_code,
        error=message,
        traceback=traceback.format_exc() if server_fault else None,
    )

    return _envelope(
        status_code,
        request,
        error_code=error_code,
        message=message,
        hint=hint,
        errors=exc.errors if isinstance(exc, StockValidationError) else None,
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence for exceptions no handler claimed."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, request-validation and HTTP errors."""

    @app.exception_handler(StockLedgerError)
    async def ledger_error(request: Request, exc: StockLedgerError) -> JSONResponse:
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        return _envelope(
            422,
            request,
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            hint="Check the request body fields and types.",
            detail="; ".join(problems),
        )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        error_code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return _envelope(
            exc.status_code,
            request,
            error_code=error_code,
            message=str(exc.detail or "HTTP error"),
            hint=_FALLBACK_HINTS.get(exc.status_code),
        )
