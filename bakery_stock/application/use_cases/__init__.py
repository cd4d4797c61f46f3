"""Application use cases."""

from bakery_stock.application.use_cases.convert_unit import ConvertUnitUseCase
from bakery_stock.application.use_cases.record_movement import RecordMovementUseCase

__all__ = [
    "RecordMovementUseCase",
    "ConvertUnitUseCase",
]
