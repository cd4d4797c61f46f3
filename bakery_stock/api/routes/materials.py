"""Raw material endpoints."""

from fastapi import APIRouter, Depends, Query, status

from bakery_stock.api.dependencies import get_convert_unit_use_case, get_ledger
from bakery_stock.application.dto.mappers import material_to_response, movement_to_response
from bakery_stock.application.dto.requests import (
    ConvertUnitRequest,
    CreateMaterialRequest,
    UpdateMaterialRequest,
)
from bakery_stock.application.dto.responses import (
    ErrorResponse,
    MovementListResponse,
    RawMaterialListResponse,
    RawMaterialResponse,
)
from bakery_stock.application.use_cases import ConvertUnitUseCase
from bakery_stock.core.entities import RawMaterial
from bakery_stock.core.services import StockLedgerService

router = APIRouter(prefix="/api/stock/materials", tags=["materials"])


@router.get("", response_model=RawMaterialListResponse)
async def list_materials(
    active_only: bool = Query(default=False),
    ledger: StockLedgerService = Depends(get_ledger),
) -> RawMaterialListResponse:
    """List raw materials by name."""
    materials = await ledger.list_materials(active_only=active_only)
    return RawMaterialListResponse(
        items=[material_to_response(m) for m in materials],
        total=len(materials),
    )


@router.post(
    "",
    response_model=RawMaterialResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_material(
    request: CreateMaterialRequest,
    ledger: StockLedgerService = Depends(get_ledger),
) -> RawMaterialResponse:
    """Create a raw material with its opening stock and cost."""
    material = await ledger.add_material(RawMaterial(**request.model_dump()))
    return material_to_response(material)


# Declared before /{material_id} so "low-stock" is not taken for an ID
@router.get("/low-stock", response_model=RawMaterialListResponse)
async def low_stock_materials(
    ledger: StockLedgerService = Depends(get_ledger),
) -> RawMaterialListResponse:
    """Active materials at or below their reorder threshold."""
    materials = await ledger.low_stock_materials()
    return RawMaterialListResponse(
        items=[material_to_response(m) for m in materials],
        total=len(materials),
    )


@router.get(
    "/{material_id}",
    response_model=RawMaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_material(
    material_id: str,
    ledger: StockLedgerService = Depends(get_ledger),
) -> RawMaterialResponse:
    material = await ledger.get_material(material_id)
    return material_to_response(material)


@router.patch(
    "/{material_id}",
    response_model=RawMaterialResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_material(
    material_id: str,
    request: UpdateMaterialRequest,
    ledger: StockLedgerService = Depends(get_ledger),
) -> RawMaterialResponse:
    """Edit name, unit label, threshold, preferred supplier or active flag."""
    material = await ledger.update_material(material_id, request.model_dump(exclude_unset=True))
    return material_to_response(material)


@router.delete(
    "/{material_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_material(
    material_id: str,
    ledger: StockLedgerService = Depends(get_ledger),
) -> None:
    """Delete a material. Its movements stay in the ledger."""
    await ledger.delete_material(material_id)


@router.post(
    "/{material_id}/convert-unit",
    response_model=RawMaterialResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def convert_unit(
    material_id: str,
    request: ConvertUnitRequest,
    use_case: ConvertUnitUseCase = Depends(get_convert_unit_use_case),
) -> RawMaterialResponse:
    """Change the counting unit without changing stock value."""
    material = await use_case.execute(material_id, request)
    return use_case.to_response(material)


@router.get(
    "/{material_id}/movements",
    response_model=MovementListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def material_movements(
    material_id: str,
    ledger: StockLedgerService = Depends(get_ledger),
) -> MovementListResponse:
    """Movements of one material, newest first."""
    await ledger.get_material(material_id)
    movements = await ledger.list_movements(material_id)
    return MovementListResponse(
        items=[movement_to_response(m) for m in movements],
        total=len(movements),
    )
