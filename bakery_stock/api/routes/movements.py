"""Stock movement endpoints."""

from fastapi import APIRouter, Depends, Query, status

from bakery_stock.api.dependencies import get_ledger, get_record_movement_use_case
from bakery_stock.application.dto.mappers import movement_to_response
from bakery_stock.application.dto.requests import RecordMovementRequest
from bakery_stock.application.dto.responses import (
    ErrorResponse,
    MovementListResponse,
    MovementRecordedResponse,
)
from bakery_stock.application.use_cases import RecordMovementUseCase
from bakery_stock.core.services import StockLedgerService

router = APIRouter(prefix="/api/stock/movements", tags=["movements"])


@router.post(
    "",
    response_model=MovementRecordedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def record_movement(
    request: RecordMovementRequest,
    use_case: RecordMovementUseCase = Depends(get_record_movement_use_case),
) -> MovementRecordedResponse:
    """Record a movement and revalue its material (PMP)."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("", response_model=MovementListResponse)
async def list_movements(
    material_id: str | None = Query(default=None),
    ledger: StockLedgerService = Depends(get_ledger),
) -> MovementListResponse:
    """Ledger entries, newest first."""
    movements = await ledger.list_movements(material_id)
    return MovementListResponse(
        items=[movement_to_response(m) for m in movements],
        total=len(movements),
    )
