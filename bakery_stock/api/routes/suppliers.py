"""Supplier endpoints."""

from fastapi import APIRouter, Depends, Query, status

from bakery_stock.api.dependencies import get_ledger
from bakery_stock.application.dto.mappers import supplier_to_response
from bakery_stock.application.dto.requests import CreateSupplierRequest, UpdateSupplierRequest
from bakery_stock.application.dto.responses import (
    ErrorResponse,
    SupplierListResponse,
    SupplierResponse,
)
from bakery_stock.core.entities import Supplier
from bakery_stock.core.services import StockLedgerService

router = APIRouter(prefix="/api/stock/suppliers", tags=["suppliers"])


@router.get("", response_model=SupplierListResponse)
async def list_suppliers(
    active_only: bool = Query(default=False),
    ledger: StockLedgerService = Depends(get_ledger),
) -> SupplierListResponse:
    suppliers = await ledger.list_suppliers(active_only=active_only)
    return SupplierListResponse(
        items=[supplier_to_response(s) for s in suppliers],
        total=len(suppliers),
    )


@router.post(
    "",
    response_model=SupplierResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_supplier(
    request: CreateSupplierRequest,
    ledger: StockLedgerService = Depends(get_ledger),
) -> SupplierResponse:
    supplier = await ledger.add_supplier(Supplier(**request.model_dump()))
    return supplier_to_response(supplier)


@router.get(
    "/{supplier_id}",
    response_model=SupplierResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_supplier(
    supplier_id: str,
    ledger: StockLedgerService = Depends(get_ledger),
) -> SupplierResponse:
    return supplier_to_response(await ledger.get_supplier(supplier_id))


@router.patch(
    "/{supplier_id}",
    response_model=SupplierResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_supplier(
    supplier_id: str,
    request: UpdateSupplierRequest,
    ledger: StockLedgerService = Depends(get_ledger),
) -> SupplierResponse:
    supplier = await ledger.update_supplier(supplier_id, request.model_dump(exclude_unset=True))
    return supplier_to_response(supplier)


@router.delete(
    "/{supplier_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_supplier(
    supplier_id: str,
    ledger: StockLedgerService = Depends(get_ledger),
) -> None:
    await ledger.delete_supplier(supplier_id)
