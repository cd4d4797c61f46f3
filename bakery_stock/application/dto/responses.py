"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime

from pydantic import BaseModel, Field

# --- Raw materials ---


class RawMaterialResponse(BaseModel):
    """Raw material response DTO."""

    id: str
    name: str
    unit: str
    current_stock: float
    reorder_threshold: float
    weighted_average_cost: float
    total_value: float
    is_low_stock: bool
    preferred_supplier_id: str | None = None
    active: bool = True
    created_at: datetime
    updated_at: datetime


class RawMaterialListResponse(BaseModel):
    """List of raw materials."""

    items: list[RawMaterialResponse]
    total: int


# --- Movements ---


class StockMovementResponse(BaseModel):
    """Stock movement response DTO."""

    id: str
    date: datetime
    material_id: str
    type: str
    quantity: float
    unit_price: float | None = None
    total_price: float | None = None
    reason: str | None = None
    document_reference: str | None = None
    author: str | None = None
    validator: str | None = None
    supplier_id: str | None = None
    user_id: str | None = None
    created_at: datetime


class MovementListResponse(BaseModel):
    """List of stock movements, newest first."""

    items: list[StockMovementResponse]
    total: int


class MovementRecordedResponse(BaseModel):
    """Response for a recorded movement."""

    movement: StockMovementResponse
    material: RawMaterialResponse
    stock_before: float
    pmp_before: float
    value_before: float


# --- Suppliers ---


class SupplierResponse(BaseModel):
    """Supplier response DTO."""

    id: str
    name: str
    contact: str = ""
    phone: str | None = None
    address: str | None = None
    categories: list[str] = Field(default_factory=list)
    active: bool = True
    created_at: datetime
    updated_at: datetime


class SupplierListResponse(BaseModel):
    """List of suppliers."""

    items: list[SupplierResponse]
    total: int


# --- Reports ---


class PurchaseCostResponse(BaseModel):
    """Purchase spend over a period."""

    period_start: datetime
    period_end: datetime
    material_id: str | None = None
    total: float
    currency: str


class ConsumedValueLineResponse(BaseModel):
    """One valued consumption or loss movement."""

    movement_id: str | None = None
    material_id: str
    type: str
    date: datetime
    quantity: float
    value: float
    is_estimated: bool = False


class ConsumedValueResponse(BaseModel):
    """Cost of goods consumed over a period."""

    period_start: datetime
    period_end: datetime
    total: float
    estimated_total: float
    has_estimates: bool
    currency: str
    lines: list[ConsumedValueLineResponse] = Field(default_factory=list)


class StockDashboardResponse(BaseModel):
    """Stock dashboard figures for a period."""

    period_start: datetime
    period_end: datetime
    total_stock_value: float
    low_stock_count: int
    purchase_cost: float
    consumed_value: float
    consumed_value_is_estimated: bool
    sales_total: float
    gross_margin: float
    margin_rate: float = Field(..., description="Gross margin as a percentage of sales")
    currency: str


# --- System ---


class ProviderHealthResponse(BaseModel):
    """Dependency health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. MATERIAL_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
