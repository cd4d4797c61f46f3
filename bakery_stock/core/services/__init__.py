"""Core business services."""

from bakery_stock.core.services.snapshot import StockSnapshot
from bakery_stock.core.services.stock_ledger import (
    MATERIALS,
    MOVEMENTS,
    SUPPLIERS,
    MovementRecorded,
    StockLedgerService,
)
from bakery_stock.core.services.valuation import (
    MovementValuation,
    UnitConversion,
    consumed_value_report,
    convert_unit_values,
    current_month_period,
    ensure_utc,
    in_period,
    total_purchase_cost,
    value_movement,
)

__all__ = [
    "StockLedgerService",
    "MovementRecorded",
    "StockSnapshot",
    "MATERIALS",
    "MOVEMENTS",
    "SUPPLIERS",
    # Valuation
    "MovementValuation",
    "UnitConversion",
    "value_movement",
    "convert_unit_values",
    "total_purchase_cost",
    "consumed_value_report",
    "current_month_period",
    "ensure_utc",
    "in_period",
]
