"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Business rules (signed corrections, countersigning, purchase prices) are
enforced by the ledger service so that they surface as VALIDATION_ERROR
rather than as schema errors.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from bakery_stock.core.entities import MovementType, UnitOfMeasure

# --- Raw materials ---


class CreateMaterialRequest(BaseModel):
    """Request to create a raw material with its opening stock."""

    name: str = Field(..., min_length=1, description="Material name", examples=["Farine T55"])
    unit: UnitOfMeasure = Field(..., description="Unit the stock is counted in")
    current_stock: float = Field(default=0.0, description="Opening stock")
    weighted_average_cost: float = Field(
        default=0.0,
        ge=0,
        description="Opening cost per unit (PMP)",
    )
    reorder_threshold: float = Field(default=0.0, ge=0, description="Low-stock alert level")
    preferred_supplier_id: str | None = Field(default=None, description="Usual supplier")
    active: bool = Field(default=True)


class UpdateMaterialRequest(BaseModel):
    """Request to edit a material's descriptive fields.

    Unset fields are left unchanged.
    """

    name: str | None = Field(default=None, description="Material name")
    unit: UnitOfMeasure | None = Field(default=None, description="Unit label")
    reorder_threshold: float | None = Field(default=None, ge=0)
    preferred_supplier_id: str | None = Field(default=None)
    active: bool | None = Field(default=None)


class ConvertUnitRequest(BaseModel):
    """Request to re-express a material in another unit."""

    factor: float = Field(
        ...,
        description="New units per old unit (50 to turn 50 kg bags into kg)",
        examples=[50],
    )
    new_unit: UnitOfMeasure = Field(..., description="Target unit", examples=["kg"])


# --- Movements ---


class RecordMovementRequest(BaseModel):
    """Request to record a stock movement."""

    material_id: str = Field(..., description="Raw material ID")
    type: MovementType = Field(..., description="Movement type")
    quantity: float = Field(
        ...,
        description="Positive magnitude; signed for corrections",
    )
    total_price: float | None = Field(
        default=None,
        description="Amount paid (required for purchases)",
    )
    author: str = Field(..., description="Person performing the movement")
    validator: str | None = Field(
        default=None,
        description="Countersigning person (required except for purchases)",
    )
    date: datetime | None = Field(default=None, description="Movement date (defaults to now)")
    reason: str | None = Field(default=None, description="Free-text reason")
    document_reference: str | None = Field(
        default=None,
        description="Delivery note or invoice reference",
    )
    supplier_id: str | None = Field(default=None, description="Supplier for purchases and returns")
    user_id: str | None = Field(default=None, description="Account that entered the movement")


# --- Suppliers ---


class CreateSupplierRequest(BaseModel):
    """Request to create a supplier."""

    name: str = Field(..., min_length=1, description="Supplier name")
    contact: str = Field(default="", description="Contact person")
    phone: str | None = Field(default=None)
    address: str | None = Field(default=None)
    categories: list[str] = Field(default_factory=list, description="Material categories supplied")
    active: bool = Field(default=True)


class UpdateSupplierRequest(BaseModel):
    """Request to update a supplier. Unset fields are left unchanged."""

    name: str | None = Field(default=None)
    contact: str | None = Field(default=None)
    phone: str | None = Field(default=None)
    address: str | None = Field(default=None)
    categories: list[str] | None = Field(default=None)
    active: bool | None = Field(default=None)
