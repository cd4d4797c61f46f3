"""
Raw material domain entity.

A raw material carries its own running stock and weighted-average cost.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class UnitOfMeasure(str, Enum):
    """Units a raw material can be counted in."""

    KILOGRAM = "kg"
    GRAM = "g"
    LITER = "l"
    MILLILITER = "ml"
    PIECE = "piece"
    BAG_50KG = "sac_50kg"
    BAG_25KG = "sac_25kg"


# Fields an administrative edit may change. Stock and cost need a movement.
METADATA_FIELDS = frozenset(
    {"name", "unit", "reorder_threshold", "preferred_supplier_id", "active"}
)


class RawMaterial(BaseModel):
    """
    A raw material ("matière première") held in stock.

    ``total_value`` is stored rather than computed on read; every mutation
    path keeps it equal to ``current_stock * weighted_average_cost``.
    """

    id: str | None = None
    name: str
    unit: UnitOfMeasure
    current_stock: float = 0.0
    reorder_threshold: float = 0.0
    weighted_average_cost: float = 0.0  # PMP, per unit
    total_value: float = 0.0
    preferred_supplier_id: str | None = None
    active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def derive_total_value(self) -> "RawMaterial":
        """Initialise total_value from stock and cost when not provided."""
        if not self.total_value and self.current_stock and self.weighted_average_cost:
            self.total_value = self.current_stock * self.weighted_average_cost
        return self

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.reorder_threshold

    def to_record(self) -> dict:
        """Serialize for the document store (id is the document key)."""
        return self.model_dump(mode="json", exclude={"id"})
