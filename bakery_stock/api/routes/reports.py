"""Stock cost reports and dashboard."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from bakery_stock.api.dependencies import get_ledger
from bakery_stock.application.dto.mappers import consumed_value_to_response, dashboard_to_response
from bakery_stock.application.dto.responses import (
    ConsumedValueResponse,
    ErrorResponse,
    PurchaseCostResponse,
    StockDashboardResponse,
)
from bakery_stock.config import get_settings
from bakery_stock.core.exceptions import ValidationError
from bakery_stock.core.services import StockLedgerService, current_month_period, ensure_utc

router = APIRouter(prefix="/api/stock", tags=["reports"])


def _resolve_period(
    start: datetime | None,
    end: datetime | None,
) -> tuple[datetime, datetime]:
    """Default to the current month; both bounds inclusive."""
    month_start, now = current_month_period()
    start = ensure_utc(start) if start else month_start
    end = ensure_utc(end) if end else now
    if start > end:
        raise ValidationError("start", "Period start is after its end", start.isoformat())
    return start, end


@router.get(
    "/reports/purchases",
    response_model=PurchaseCostResponse,
    responses={400: {"model": ErrorResponse}},
)
async def purchase_cost(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    material_id: str | None = Query(default=None),
    ledger: StockLedgerService = Depends(get_ledger),
) -> PurchaseCostResponse:
    """Cash spent on purchases over the period."""
    start, end = _resolve_period(start, end)
    total = await ledger.total_purchase_cost(start, end, material_id)
    return PurchaseCostResponse(
        period_start=start,
        period_end=end,
        material_id=material_id,
        total=total,
        currency=get_settings().ledger.currency,
    )


@router.get(
    "/reports/consumption",
    response_model=ConsumedValueResponse,
    responses={400: {"model": ErrorResponse}},
)
async def consumed_value(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    ledger: StockLedgerService = Depends(get_ledger),
) -> ConsumedValueResponse:
    """Cost of goods consumed and lost over the period, per movement."""
    start, end = _resolve_period(start, end)
    report = await ledger.consumed_value_report(start, end)
    return consumed_value_to_response(report, get_settings().ledger.currency)


@router.get(
    "/reports/dashboard",
    response_model=StockDashboardResponse,
    responses={400: {"model": ErrorResponse}},
)
async def stock_dashboard(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    sales_total: float = Query(default=0.0, ge=0),
    ledger: StockLedgerService = Depends(get_ledger),
) -> StockDashboardResponse:
    """Stock value, low-stock count and gross margin over the period."""
    start, end = _resolve_period(start, end)
    dashboard = await ledger.stock_dashboard(start, end, sales_total=sales_total)
    return dashboard_to_response(dashboard)


@router.post("/refresh", status_code=status.HTTP_204_NO_CONTENT)
async def refresh_snapshot(
    ledger: StockLedgerService = Depends(get_ledger),
) -> None:
    """Reload materials, movements and suppliers from the database."""
    await ledger.refresh()
