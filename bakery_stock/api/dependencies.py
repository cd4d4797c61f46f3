"""
Dependency injection container for FastAPI.

Provides service instances to route handlers.
"""

from bakery_stock.application.services import get_stock_ledger_service
from bakery_stock.application.use_cases import ConvertUnitUseCase, RecordMovementUseCase
from bakery_stock.core.services import StockLedgerService


# Service dependencies
async def get_ledger() -> StockLedgerService:
    """Get the process-wide stock ledger service."""
    return await get_stock_ledger_service()


# Use case dependencies
async def get_record_movement_use_case() -> RecordMovementUseCase:
    """Get record movement use case."""
    return RecordMovementUseCase(await get_ledger())


async def get_convert_unit_use_case() -> ConvertUnitUseCase:
    """Get convert unit use case."""
    return ConvertUnitUseCase(await get_ledger())
