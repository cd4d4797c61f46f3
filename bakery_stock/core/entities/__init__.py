"""Domain entities."""

from bakery_stock.core.entities.material import (
    METADATA_FIELDS,
    RawMaterial,
    UnitOfMeasure,
)
from bakery_stock.core.entities.movement import (
    CONSUMED_TYPES,
    OUTFLOW_TYPES,
    MovementType,
    StockMovement,
)
from bakery_stock.core.entities.report import (
    ConsumedValueLine,
    ConsumedValueReport,
    StockDashboard,
)
from bakery_stock.core.entities.supplier import Supplier

__all__ = [
    # Materials
    "RawMaterial",
    "UnitOfMeasure",
    "METADATA_FIELDS",
    # Movements
    "StockMovement",
    "MovementType",
    "OUTFLOW_TYPES",
    "CONSUMED_TYPES",
    # Suppliers
    "Supplier",
    # Reports
    "ConsumedValueLine",
    "ConsumedValueReport",
    "StockDashboard",
]
