"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from bakery_stock.application.dto.requests import (
    ConvertUnitRequest,
    CreateMaterialRequest,
    CreateSupplierRequest,
    RecordMovementRequest,
    UpdateMaterialRequest,
    UpdateSupplierRequest,
)
from bakery_stock.application.dto.responses import (
    ConsumedValueLineResponse,
    ConsumedValueResponse,
    ErrorResponse,
    HealthResponse,
    MovementListResponse,
    MovementRecordedResponse,
    ProviderHealthResponse,
    PurchaseCostResponse,
    RawMaterialListResponse,
    RawMaterialResponse,
    StockDashboardResponse,
    StockMovementResponse,
    SupplierListResponse,
    SupplierResponse,
)

__all__ = [
    # Requests
    "CreateMaterialRequest",
    "UpdateMaterialRequest",
    "ConvertUnitRequest",
    "RecordMovementRequest",
    "CreateSupplierRequest",
    "UpdateSupplierRequest",
    # Responses
    "RawMaterialResponse",
    "RawMaterialListResponse",
    "StockMovementResponse",
    "MovementListResponse",
    "MovementRecordedResponse",
    "SupplierResponse",
    "SupplierListResponse",
    "PurchaseCostResponse",
    "ConsumedValueLineResponse",
    "ConsumedValueResponse",
    "StockDashboardResponse",
    "ProviderHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
