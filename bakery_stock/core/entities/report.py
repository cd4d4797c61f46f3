"""Cost aggregation report entities."""

from datetime import datetime

from pydantic import BaseModel, Field

from bakery_stock.core.entities.movement import MovementType


class ConsumedValueLine(BaseModel):
    """Valuation of a single consumption or loss movement."""

    movement_id: str | None = None
    material_id: str
    type: MovementType
    date: datetime
    quantity: float
    value: float
    # True when the movement had no stored price and was valued at today's PMP
    is_estimated: bool = False


class ConsumedValueReport(BaseModel):
    """Cost of goods consumed over a period."""

    period_start: datetime
    period_end: datetime
    lines: list[ConsumedValueLine] = Field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(line.value for line in self.lines)

    @property
    def estimated_total(self) -> float:
        return sum(line.value for line in self.lines if line.is_estimated)

    @property
    def has_estimates(self) -> bool:
        return any(line.is_estimated for line in self.lines)


class StockDashboard(BaseModel):
    """Headline figures for the stock and margin dashboard."""

    period_start: datetime
    period_end: datetime
    total_stock_value: float
    low_stock_count: int
    purchase_cost: float
    consumed_value: float
    consumed_value_is_estimated: bool = False
    sales_total: float = 0.0
    gross_margin: float
    margin_rate: float  # percent of sales
    currency: str = "FCFA"
