"""
Weighted-average cost (PMP) arithmetic.

Pure functions: no I/O, no clock except where a default period is needed.
The ledger service runs them inside a transaction against freshly read
material state.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from bakery_stock.core.entities import (
    CONSUMED_TYPES,
    OUTFLOW_TYPES,
    ConsumedValueLine,
    ConsumedValueReport,
    MovementType,
    RawMaterial,
    StockMovement,
)
from bakery_stock.core.exceptions import ValidationError


@dataclass(frozen=True)
class MovementValuation:
    """Material state before/after a movement and the movement's own value."""

    stock_before: float
    pmp_before: float
    value_before: float
    stock_after: float
    pmp_after: float
    value_after: float
    signed_quantity: float
    movement_value: float

    @property
    def unit_price(self) -> float | None:
        if self.signed_quantity == 0:
            return None
        return self.movement_value / abs(self.signed_quantity)


def value_movement(
    material: RawMaterial,
    movement_type: MovementType,
    quantity: float,
    total_price: float | None = None,
) -> MovementValuation:
    """
    Apply one movement to a material's stock, PMP and stored value.

    ``quantity`` is the operator's magnitude for every type except
    ``correction``, where its sign is kept (positive adds, negative removes).
    Purchases move the PMP; every other type values stock at the unchanged
    PMP and re-derives ``value_after`` from the new stock.
    """
    stock_before = material.current_stock
    pmp_before = material.weighted_average_cost
    value_before = material.total_value

    if movement_type == MovementType.PURCHASE:
        if total_price is None:
            raise ValidationError("total_price", "A purchase needs its total price")
        signed_quantity = quantity
        stock_after = stock_before + quantity
        value_after = value_before + total_price
        pmp_after = value_after / stock_after if stock_after > 0 else pmp_before
        movement_value = total_price
    else:
        if movement_type in OUTFLOW_TYPES:
            signed_quantity = -abs(quantity)
        else:
            signed_quantity = quantity
        stock_after = stock_before + signed_quantity
        pmp_after = pmp_before
        value_after = stock_after * pmp_after
        movement_value = total_price if total_price else abs(quantity) * pmp_after

    return MovementValuation(
        stock_before=stock_before,
        pmp_before=pmp_before,
        value_before=value_before,
        stock_after=stock_after,
        pmp_after=pmp_after,
        value_after=value_after,
        signed_quantity=signed_quantity,
        movement_value=movement_value,
    )


@dataclass(frozen=True)
class UnitConversion:
    stock: float
    pmp: float
    threshold: float
    value: float


def convert_unit_values(
    material: RawMaterial,
    factor: float,
    tolerance: float = 1e-9,
) -> UnitConversion:
    """
    Re-express stock and cost in a unit ``factor`` times smaller.

    One 50 kg bag at 15 000 becomes 50 kg at 300 with factor 50.
    """
    if not math.isfinite(factor) or factor <= 0:
        raise ValidationError("factor", "Conversion factor must be a positive number", factor)

    stock = material.current_stock * factor
    pmp = material.weighted_average_cost / factor
    threshold = material.reorder_threshold * factor

    value_before = material.current_stock * material.weighted_average_cost
    value_after = stock * pmp
    if not math.isclose(value_before, value_after, rel_tol=tolerance, abs_tol=tolerance):
        raise ValidationError(
            "factor",
            f"Conversion would change stock value from {value_before} to {value_after}",
            factor,
        )

    return UnitConversion(stock=stock, pmp=pmp, threshold=threshold, value=value_after)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def in_period(moment: datetime, start: datetime, end: datetime) -> bool:
    """Inclusive on both bounds."""
    return ensure_utc(start) <= ensure_utc(moment) <= ensure_utc(end)


def current_month_period(now: datetime | None = None) -> tuple[datetime, datetime]:
    """First instant of the current month up to ``now``."""
    now = ensure_utc(now or datetime.now(UTC))
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0), now


def total_purchase_cost(
    movements: Iterable[StockMovement],
    start: datetime,
    end: datetime,
    material_id: str | None = None,
) -> float:
    """Sum of purchase prices in ``[start, end]``."""
    return sum(
        m.total_price or 0.0
        for m in movements
        if m.type == MovementType.PURCHASE
        and in_period(m.date, start, end)
        and (material_id is None or m.material_id == material_id)
    )


def consumed_value_report(
    movements: Iterable[StockMovement],
    materials: Mapping[str, RawMaterial],
    start: datetime,
    end: datetime,
) -> ConsumedValueReport:
    """
    Value consumption and loss movements of a period.

    Movements without a stored price are valued at the material's *current*
    PMP and flagged ``is_estimated``; historical cost may have drifted since.
    Supplier returns and corrections are not consumption.
    """
    lines = []
    for m in movements:
        if m.type not in CONSUMED_TYPES or not in_period(m.date, start, end):
            continue
        if m.total_price:
            value = m.total_price
            estimated = False
        else:
            material = materials.get(m.material_id)
            pmp = material.weighted_average_cost if material else 0.0
            value = abs(m.quantity) * pmp
            estimated = True
        lines.append(
            ConsumedValueLine(
                movement_id=m.id,
                material_id=m.material_id,
                type=m.type,
                date=m.date,
                quantity=m.quantity,
                value=value,
                is_estimated=estimated,
            )
        )

    return ConsumedValueReport(
        period_start=ensure_utc(start),
        period_end=ensure_utc(end),
        lines=lines,
    )
