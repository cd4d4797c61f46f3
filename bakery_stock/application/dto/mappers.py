"""Entity to response DTO conversion shared by use cases and routes."""

from bakery_stock.application.dto.responses import (
    ConsumedValueLineResponse,
    ConsumedValueResponse,
    RawMaterialResponse,
    StockDashboardResponse,
    StockMovementResponse,
    SupplierResponse,
)
from bakery_stock.core.entities import (
    ConsumedValueReport,
    RawMaterial,
    StockDashboard,
    StockMovement,
    Supplier,
)


def material_to_response(material: RawMaterial) -> RawMaterialResponse:
    return RawMaterialResponse(
        id=material.id,  # type: ignore[arg-type]
        name=material.name,
        unit=material.unit.value,
        current_stock=material.current_stock,
        reorder_threshold=material.reorder_threshold,
        weighted_average_cost=material.weighted_average_cost,
        total_value=material.total_value,
        is_low_stock=material.is_low_stock,
        preferred_supplier_id=material.preferred_supplier_id,
        active=material.active,
        created_at=material.created_at,
        updated_at=material.updated_at,
    )


def movement_to_response(movement: StockMovement) -> StockMovementResponse:
    return StockMovementResponse(
        id=movement.id,  # type: ignore[arg-type]
        date=movement.date,
        material_id=movement.material_id,
        type=movement.type.value,
        quantity=movement.quantity,
        unit_price=movement.unit_price,
        total_price=movement.total_price,
        reason=movement.reason,
        document_reference=movement.document_reference,
        author=movement.author,
        validator=movement.validator,
        supplier_id=movement.supplier_id,
        user_id=movement.user_id,
        created_at=movement.created_at,
    )


def supplier_to_response(supplier: Supplier) -> SupplierResponse:
    return SupplierResponse(
        id=supplier.id,  # type: ignore[arg-type]
        name=supplier.name,
        contact=supplier.contact,
        phone=supplier.phone,
        address=supplier.address,
        categories=list(supplier.categories),
        active=supplier.active,
        created_at=supplier.created_at,
        updated_at=supplier.updated_at,
    )


def consumed_value_to_response(
    report: ConsumedValueReport,
    currency: str,
) -> ConsumedValueResponse:
    return ConsumedValueResponse(
        period_start=report.period_start,
        period_end=report.period_end,
        total=report.total,
        estimated_total=report.estimated_total,
        has_estimates=report.has_estimates,
        currency=currency,
        lines=[
            ConsumedValueLineResponse(
                movement_id=line.movement_id,
                material_id=line.material_id,
                type=line.type.value,
                date=line.date,
                quantity=line.quantity,
                value=line.value,
                is_estimated=line.is_estimated,
            )
            for line in report.lines
        ],
    )


def dashboard_to_response(dashboard: StockDashboard) -> StockDashboardResponse:
    return StockDashboardResponse(**dashboard.model_dump())
