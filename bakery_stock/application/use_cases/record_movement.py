"""Record Movement Use Case - ledger entry with PMP revaluation."""

from bakery_stock.application.dto.mappers import material_to_response, movement_to_response
from bakery_stock.application.dto.requests import RecordMovementRequest
from bakery_stock.application.dto.responses import MovementRecordedResponse
from bakery_stock.config import get_logger
from bakery_stock.core.services import MovementRecorded, StockLedgerService

logger = get_logger(__name__)


class RecordMovementUseCase:
    """Record a purchase, consumption, loss, correction or supplier return."""

    def __init__(self, ledger: StockLedgerService | None = None):
        self._ledger = ledger

    async def _get_ledger(self) -> StockLedgerService:
        if self._ledger is None:
            from bakery_stock.application.services import get_stock_ledger_service

            self._ledger = await get_stock_ledger_service()
        return self._ledger

    async def execute(self, request: RecordMovementRequest) -> MovementRecorded:
        """Execute record movement use case."""
        logger.info(
            "record_movement_started",
            material_id=request.material_id,
            type=request.type.value,
            quantity=request.quantity,
        )

        ledger = await self._get_ledger()
        return await ledger.record_movement(
            request.material_id,
            request.type,
            request.quantity,
            total_price=request.total_price,
            author=request.author,
            validator=request.validator,
            date=request.date,
            reason=request.reason,
            document_reference=request.document_reference,
            supplier_id=request.supplier_id,
            user_id=request.user_id,
        )

    def to_response(self, result: MovementRecorded) -> MovementRecordedResponse:
        """Convert result to API response."""
        return MovementRecordedResponse(
            movement=movement_to_response(result.movement),
            material=material_to_response(result.material),
            stock_before=result.valuation.stock_before,
            pmp_before=result.valuation.pmp_before,
            value_before=result.valuation.value_before,
        )
