"""Convert Unit Use Case - change a material's counting unit at constant value."""

from bakery_stock.application.dto.mappers import material_to_response
from bakery_stock.application.dto.requests import ConvertUnitRequest
from bakery_stock.application.dto.responses import RawMaterialResponse
from bakery_stock.config import get_logger
from bakery_stock.core.entities import RawMaterial
from bakery_stock.core.services import StockLedgerService

logger = get_logger(__name__)


class ConvertUnitUseCase:
    """Re-express stock, PMP and threshold of a material in a new unit."""

    def __init__(self, ledger: StockLedgerService | None = None):
        self._ledger = ledger

    async def _get_ledger(self) -> StockLedgerService:
        if self._ledger is None:
            from bakery_stock.application.services import get_stock_ledger_service

            self._ledger = await get_stock_ledger_service()
        return self._ledger

    async def execute(self, material_id: str, request: ConvertUnitRequest) -> RawMaterial:
        logger.info(
            "convert_unit_started",
            material_id=material_id,
            factor=request.factor,
            new_unit=request.new_unit.value,
        )
        ledger = await self._get_ledger()
        return await ledger.convert_unit(material_id, request.factor, request.new_unit)

    def to_response(self, material: RawMaterial) -> RawMaterialResponse:
        return material_to_response(material)
