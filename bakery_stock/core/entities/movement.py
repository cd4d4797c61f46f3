"""Stock movement ledger entities."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MovementType(str, Enum):
    """Types of stock movements."""

    PURCHASE = "purchase"
    CONSUMPTION = "consumption"
    LOSS = "loss"
    CORRECTION = "correction"
    SUPPLIER_RETURN = "supplier_return"


# Types that take stock out; the caller enters a magnitude, the sign is applied here.
OUTFLOW_TYPES = frozenset(
    {MovementType.CONSUMPTION, MovementType.LOSS, MovementType.SUPPLIER_RETURN}
)

# Types counted as cost of goods consumed. Supplier returns are refunds, not usage.
CONSUMED_TYPES = frozenset({MovementType.CONSUMPTION, MovementType.LOSS})


class StockMovement(BaseModel):
    """
    An immutable ledger entry.

    ``quantity`` is stored with the applied sign: negative for outflows,
    positive for purchases, either for corrections. ``total_price`` holds the
    purchase price or, for other types, the valuation at the PMP in effect
    when the movement was recorded.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    material_id: str
    type: MovementType
    quantity: float
    unit_price: float | None = None
    total_price: float | None = None
    reason: str | None = None
    document_reference: str | None = None  # invoice or delivery note number
    author: str | None = None
    validator: str | None = None
    supplier_id: str | None = None
    user_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_record(self) -> dict:
        """Serialize for the document store (id is the document key)."""
        return self.model_dump(mode="json", exclude={"id"})
