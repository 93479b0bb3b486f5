"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    AvailabilityCheckRequest,
    CreateProductRequest,
    CreateTransactionRequest,
    PhysicalCountRequest,
    StockAdjustmentRequest,
    TransactionItemRequest,
)
from src.application.dto.responses import (
    AvailabilityResponse,
    CurrentStockResponse,
    ErrorResponse,
    HealthResponse,
    IntegrityReportResponse,
    PaginatedResponse,
    ProductListResponse,
    ProductResponse,
    StockAdjustmentResponse,
    StockCardResponse,
    StockLevelsResponse,
    StockMovementResponse,
    StockSummaryResponse,
    StorageHealthResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "CreateProductRequest",
    "CreateTransactionRequest",
    "TransactionItemRequest",
    "AvailabilityCheckRequest",
    "PhysicalCountRequest",
    "StockAdjustmentRequest",
    # Responses
    "ErrorResponse",
    "HealthResponse",
    "StorageHealthResponse",
    "PaginatedResponse",
    "ProductResponse",
    "ProductListResponse",
    "StockMovementResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "CurrentStockResponse",
    "StockCardResponse",
    "AvailabilityResponse",
    "IntegrityReportResponse",
    "StockAdjustmentResponse",
    "StockLevelsResponse",
    "StockSummaryResponse",
]
