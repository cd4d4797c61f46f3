"""
Raw material stock ledger.

Owns raw materials, suppliers and the append-only movement log. Every
movement updates its material's stock, weighted-average cost (PMP) and
stored value in the same optimistic transaction as the ledger insert.
"""

import asyncio
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import pydantic

from bakery_stock.config import get_logger
from bakery_stock.core.entities import (
    METADATA_FIELDS,
    ConsumedValueReport,
    MovementType,
    RawMaterial,
    StockDashboard,
    StockMovement,
    Supplier,
    UnitOfMeasure,
)
from bakery_stock.core.exceptions import (
    MaterialNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)
from bakery_stock.core.interfaces import IDocumentStore, ITransaction
from bakery_stock.core.services.snapshot import StockSnapshot
from bakery_stock.core.services.valuation import (
    MovementValuation,
    consumed_value_report,
    convert_unit_values,
    ensure_utc,
    total_purchase_cost,
    value_movement,
)

logger = get_logger(__name__)

MATERIALS = "materials"
MOVEMENTS = "movements"
SUPPLIERS = "suppliers"

SUPPLIER_FIELDS = frozenset({"name", "contact", "phone", "address", "categories", "active"})

# Material fields written by a movement
VALUATION_FIELDS = ("current_stock", "weighted_average_cost", "total_value", "updated_at")


@dataclass
class MovementRecorded:
    """Result of recording a movement."""

    material: RawMaterial
    movement: StockMovement
    valuation: MovementValuation


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class StockLedgerService:
    """
    Inventory ledger and valuation engine.

    Built once per process around an injected document store. Reads are
    served from a StockSnapshot that is reloaded after any write made
    through this service, or on an explicit ``refresh()``.
    """

    def __init__(
        self,
        store: IDocumentStore,
        currency: str = "FCFA",
        value_tolerance: float = 1e-9,
    ):
        self._store = store
        self._currency = currency
        self._value_tolerance = value_tolerance
        self._snapshot: StockSnapshot | None = None
        # Bumped by every write; a load that overlaps a write is born stale
        self._generation = 0

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    @property
    def is_stale(self) -> bool:
        return self._snapshot is None or self._snapshot.stale

    def invalidate(self) -> None:
        """Mark the snapshot stale so the next read reloads it."""
        self._generation += 1
        if self._snapshot is not None:
            self._snapshot.stale = True

    async def refresh(self) -> StockSnapshot:
        """Reload materials, movements and suppliers from the store."""
        generation = self._generation
        material_docs, movement_docs, supplier_docs = await asyncio.gather(
            self._store.get_all(MATERIALS),
            self._store.get_all(MOVEMENTS),
            self._store.get_all(SUPPLIERS),
        )

        movements = self._parse_all(StockMovement, movement_docs, MOVEMENTS)
        movements.sort(key=lambda m: (ensure_utc(m.date), ensure_utc(m.created_at)), reverse=True)

        self._snapshot = StockSnapshot(
            materials=self._parse_all(RawMaterial, material_docs, MATERIALS),
            movements=movements,
            suppliers=self._parse_all(Supplier, supplier_docs, SUPPLIERS),
            stale=generation != self._generation,
        )
        logger.debug(
            "stock_snapshot_loaded",
            materials=len(self._snapshot.materials),
            movements=len(self._snapshot.movements),
            suppliers=len(self._snapshot.suppliers),
        )
        return self._snapshot

    async def snapshot(self) -> StockSnapshot:
        """Current snapshot, reloaded first if stale."""
        if self._snapshot is None or self._snapshot.stale:
            return await self.refresh()
        return self._snapshot

    @staticmethod
    def _parse_all(model: type[pydantic.BaseModel], docs: list[dict], collection: str) -> list:
        parsed = []
        for doc in docs:
            try:
                parsed.append(model.model_validate(doc))
            except pydantic.ValidationError as e:
                # Legacy or hand-edited records must not break reporting
                logger.warning(
                    "malformed_record_skipped",
                    collection=collection,
                    doc_id=doc.get("id"),
                    errors=e.error_count(),
                )
        return parsed

    # ------------------------------------------------------------------
    # Raw materials
    # ------------------------------------------------------------------

    async def add_material(self, material: RawMaterial) -> RawMaterial:
        """Create a material with operator-supplied opening stock and cost."""
        if _blank(material.name):
            raise ValidationError("name", "Material name is required")
        if material.weighted_average_cost < 0:
            raise ValidationError(
                "weighted_average_cost", "Cost cannot be negative", material.weighted_average_cost
            )
        if material.reorder_threshold < 0:
            raise ValidationError(
                "reorder_threshold", "Threshold cannot be negative", material.reorder_threshold
            )

        now = datetime.now(UTC)
        material = material.model_copy(
            update={
                "id": None,
                "name": material.name.strip(),
                "total_value": material.current_stock * material.weighted_average_cost,
                "created_at": now,
                "updated_at": now,
            }
        )
        material_id = await self._store.create(MATERIALS, material.to_record())
        material = material.model_copy(update={"id": material_id})
        self.invalidate()

        logger.info(
            "material_created",
            material_id=material_id,
            name=material.name,
            unit=material.unit.value,
            stock=material.current_stock,
            pmp=material.weighted_average_cost,
        )
        return material

    async def get_material(self, material_id: str) -> RawMaterial:
        doc = await self._store.get(MATERIALS, material_id)
        if doc is None:
            raise MaterialNotFoundError(material_id)
        return RawMaterial.model_validate(doc)

    async def update_material(self, material_id: str, updates: dict[str, Any]) -> RawMaterial:
        """
        Edit descriptive fields only.

        Stock, cost and value change through movements or unit conversion.
        """
        forbidden = sorted(set(updates) - METADATA_FIELDS)
        if forbidden:
            raise ValidationError(
                forbidden[0],
                "Only name, unit, reorder_threshold, preferred_supplier_id and active "
                "can be edited; record a movement to change stock or cost",
            )
        if "name" in updates and _blank(updates["name"]):
            raise ValidationError("name", "Material name is required")
        if updates.get("reorder_threshold") is not None and updates["reorder_threshold"] < 0:
            raise ValidationError(
                "reorder_threshold", "Threshold cannot be negative", updates["reorder_threshold"]
            )

        current = await self.get_material(material_id)
        try:
            updated = RawMaterial.model_validate(
                {**current.model_dump(), **updates, "updated_at": datetime.now(UTC)}
            )
        except pydantic.ValidationError as e:
            raise ValidationError("material", str(e.errors()[0]["msg"])) from e

        changes = {key: updated.to_record()[key] for key in (*updates, "updated_at")}
        await self._store.update(MATERIALS, material_id, changes)
        self.invalidate()

        logger.info("material_updated", material_id=material_id, fields=sorted(updates))
        return updated

    async def delete_material(self, material_id: str) -> None:
        """Hard delete. Historical movements keep their material_id."""
        if not await self._store.delete(MATERIALS, material_id):
            raise MaterialNotFoundError(material_id)
        self.invalidate()
        logger.info("material_deleted", material_id=material_id)

    async def list_materials(self, active_only: bool = False) -> list[RawMaterial]:
        snapshot = await self.snapshot()
        materials = sorted(snapshot.materials, key=lambda m: m.name.lower())
        if active_only:
            return [m for m in materials if m.active]
        return materials

    async def low_stock_materials(self) -> list[RawMaterial]:
        """Active materials at or below their reorder threshold."""
        return [m for m in await self.list_materials(active_only=True) if m.is_low_stock]

    async def convert_unit(
        self,
        material_id: str,
        factor: float,
        new_unit: UnitOfMeasure | str,
    ) -> RawMaterial:
        """
        Change the unit a material is counted in without changing its value.

        Stock and threshold are multiplied by ``factor``, PMP divided by it.
        Not a movement: nothing is written to the ledger.
        """
        try:
            unit = UnitOfMeasure(new_unit)
        except ValueError as e:
            raise ValidationError("new_unit", "Unknown unit of measure", new_unit) from e
        if not math.isfinite(factor) or factor <= 0:
            raise ValidationError("factor", "Conversion factor must be a positive number", factor)

        async def apply(txn: ITransaction) -> tuple[RawMaterial, RawMaterial]:
            doc = await txn.get(MATERIALS, material_id)
            if doc is None:
                raise MaterialNotFoundError(material_id)
            material = RawMaterial.model_validate(doc)
            if material.unit == unit:
                raise ValidationError("new_unit", "Material already uses this unit", unit.value)

            converted = convert_unit_values(material, factor, self._value_tolerance)
            updated = material.model_copy(
                update={
                    "unit": unit,
                    "current_stock": converted.stock,
                    "weighted_average_cost": converted.pmp,
                    "reorder_threshold": converted.threshold,
                    "total_value": converted.value,
                    "updated_at": datetime.now(UTC),
                }
            )
            record = updated.to_record()
            txn.update(
                MATERIALS,
                material_id,
                {
                    key: record[key]
                    for key in (*VALUATION_FIELDS, "unit", "reorder_threshold")
                },
            )
            return material, updated

        before, after = await self._store.run_transaction(apply)
        self.invalidate()

        logger.info(
            "material_unit_converted",
            material_id=material_id,
            name=after.name,
            factor=factor,
            from_unit=before.unit.value,
            to_unit=after.unit.value,
            stock=after.current_stock,
            pmp=round(after.weighted_average_cost, 4),
        )
        return after

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    async def record_movement(
        self,
        material_id: str,
        movement_type: MovementType | str,
        quantity: float,
        *,
        total_price: float | None = None,
        author: str | None = None,
        validator: str | None = None,
        date: datetime | None = None,
        reason: str | None = None,
        document_reference: str | None = None,
        supplier_id: str | None = None,
        user_id: str | None = None,
    ) -> MovementRecorded:
        """
        Append a movement and revalue its material atomically.

        ``quantity`` is a positive magnitude; consumption, loss and supplier
        returns remove it from stock. Corrections are the exception and take
        a signed quantity. ``total_price`` is required for purchases; for
        other types it defaults to ``quantity * PMP``.
        """
        movement_type = self._validate_movement(
            movement_type, quantity, total_price, author, validator
        )

        async def apply(txn: ITransaction) -> MovementRecorded:
            doc = await txn.get(MATERIALS, material_id)
            if doc is None:
                raise MaterialNotFoundError(material_id)
            material = RawMaterial.model_validate(doc)

            valuation = value_movement(material, movement_type, quantity, total_price)
            now = datetime.now(UTC)

            movement = StockMovement(
                date=ensure_utc(date) if date else now,
                material_id=material_id,
                type=movement_type,
                quantity=valuation.signed_quantity,
                unit_price=valuation.unit_price,
                total_price=valuation.movement_value,
                reason=reason,
                document_reference=document_reference,
                author=author.strip() if author else None,
                validator=validator.strip() if validator else None,
                supplier_id=supplier_id,
                user_id=user_id,
                created_at=now,
            )
            movement_id = txn.create(MOVEMENTS, movement.to_record())

            updated = material.model_copy(
                update={
                    "current_stock": valuation.stock_after,
                    "weighted_average_cost": valuation.pmp_after,
                    "total_value": valuation.value_after,
                    "updated_at": now,
                }
            )
            record = updated.to_record()
            txn.update(MATERIALS, material_id, {key: record[key] for key in VALUATION_FIELDS})
            return MovementRecorded(
                material=updated,
                movement=movement.model_copy(update={"id": movement_id}),
                valuation=valuation,
            )

        result = await self._store.run_transaction(apply)
        self.invalidate()

        if result.valuation.stock_after < 0:
            logger.warning(
                "stock_below_zero",
                material_id=material_id,
                stock=result.valuation.stock_after,
            )
        logger.info(
            "stock_movement_recorded",
            movement_id=result.movement.id,
            material_id=material_id,
            type=movement_type.value,
            qty=result.valuation.signed_quantity,
            value=round(result.valuation.movement_value, 2),
            stock_after=result.valuation.stock_after,
            pmp_after=round(result.valuation.pmp_after, 4),
        )
        return result

    @staticmethod
    def _validate_movement(
        raw_type: MovementType | str,
        quantity: float,
        total_price: float | None,
        author: str | None,
        validator: str | None,
    ) -> MovementType:
        """Reject bad input before any store round-trip."""
        try:
            movement_type = MovementType(raw_type)
        except ValueError as e:
            raise ValidationError("type", "Unknown movement type", raw_type) from e

        if quantity is None or not math.isfinite(quantity):
            raise ValidationError("quantity", "Quantity must be a number", quantity)
        if movement_type == MovementType.CORRECTION:
            if quantity == 0:
                raise ValidationError("quantity", "A correction cannot be zero", quantity)
        elif quantity <= 0:
            raise ValidationError("quantity", "Quantity must be positive", quantity)

        if total_price is not None and (not math.isfinite(total_price) or total_price < 0):
            raise ValidationError("total_price", "Price cannot be negative", total_price)
        if movement_type == MovementType.PURCHASE and total_price is None:
            raise ValidationError("total_price", "A purchase needs its total price")

        if _blank(author):
            raise ValidationError("author", "The person performing the movement is required")
        if movement_type != MovementType.PURCHASE and _blank(validator):
            raise ValidationError(
                "validator", "Stock removals and corrections must be countersigned"
            )

        return movement_type

    async def list_movements(self, material_id: str | None = None) -> list[StockMovement]:
        """Movements newest first, optionally for one material."""
        snapshot = await self.snapshot()
        if material_id is None:
            return list(snapshot.movements)
        return snapshot.movements_for(material_id)

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    async def add_supplier(self, supplier: Supplier) -> Supplier:
        if _blank(supplier.name):
            raise ValidationError("name", "Supplier name is required")
        now = datetime.now(UTC)
        supplier = supplier.model_copy(
            update={"id": None, "name": supplier.name.strip(), "created_at": now, "updated_at": now}
        )
        supplier_id = await self._store.create(SUPPLIERS, supplier.to_record())
        self.invalidate()
        logger.info("supplier_created", supplier_id=supplier_id, name=supplier.name)
        return supplier.model_copy(update={"id": supplier_id})

    async def get_supplier(self, supplier_id: str) -> Supplier:
        doc = await self._store.get(SUPPLIERS, supplier_id)
        if doc is None:
            raise SupplierNotFoundError(supplier_id)
        return Supplier.model_validate(doc)

    async def update_supplier(self, supplier_id: str, updates: dict[str, Any]) -> Supplier:
        unknown = sorted(set(updates) - SUPPLIER_FIELDS)
        if unknown:
            raise ValidationError(unknown[0], "Field cannot be edited")
        if "name" in updates and _blank(updates["name"]):
            raise ValidationError("name", "Supplier name is required")

        current = await self.get_supplier(supplier_id)
        try:
            updated = Supplier.model_validate(
                {**current.model_dump(), **updates, "updated_at": datetime.now(UTC)}
            )
        except pydantic.ValidationError as e:
            error = e.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else "supplier"
            raise ValidationError(field, str(error["msg"])) from e
        record = updated.to_record()
        await self._store.update(
            SUPPLIERS, supplier_id, {key: record[key] for key in (*updates, "updated_at")}
        )
        self.invalidate()
        logger.info("supplier_updated", supplier_id=supplier_id, fields=sorted(updates))
        return updated

    async def delete_supplier(self, supplier_id: str) -> None:
        if not await self._store.delete(SUPPLIERS, supplier_id):
            raise SupplierNotFoundError(supplier_id)
        self.invalidate()
        logger.info("supplier_deleted", supplier_id=supplier_id)

    async def list_suppliers(self, active_only: bool = False) -> list[Supplier]:
        snapshot = await self.snapshot()
        suppliers = sorted(snapshot.suppliers, key=lambda s: s.name.lower())
        if active_only:
            return [s for s in suppliers if s.active]
        return suppliers

    # ------------------------------------------------------------------
    # Cost aggregation
    # ------------------------------------------------------------------

    async def total_purchase_cost(
        self,
        start: datetime,
        end: datetime,
        material_id: str | None = None,
    ) -> float:
        """Cash spent on purchases in ``[start, end]``."""
        snapshot = await self.snapshot()
        return total_purchase_cost(snapshot.movements, start, end, material_id)

    async def consumed_value_report(self, start: datetime, end: datetime) -> ConsumedValueReport:
        """Per-movement cost of goods consumed, with estimated lines flagged."""
        snapshot = await self.snapshot()
        return consumed_value_report(snapshot.movements, snapshot.materials_by_id, start, end)

    async def consumed_value(self, start: datetime, end: datetime) -> float:
        """Cost of goods consumed (consumption + loss) in ``[start, end]``."""
        return (await self.consumed_value_report(start, end)).total

    async def stock_dashboard(
        self,
        start: datetime,
        end: datetime,
        sales_total: float = 0.0,
    ) -> StockDashboard:
        """
        Stock value, alerts and gross margin for a period.

        Sales figures belong to invoicing and the shop, so the caller passes
        them in; margin is sales minus cost of goods consumed.
        """
        snapshot = await self.snapshot()
        consumed = consumed_value_report(snapshot.movements, snapshot.materials_by_id, start, end)
        purchases = total_purchase_cost(snapshot.movements, start, end)
        margin = sales_total - consumed.total

        return StockDashboard(
            period_start=ensure_utc(start),
            period_end=ensure_utc(end),
            total_stock_value=sum(m.total_value for m in snapshot.materials),
            low_stock_count=sum(1 for m in snapshot.materials if m.active and m.is_low_stock),
            purchase_cost=purchases,
            consumed_value=consumed.total,
            consumed_value_is_estimated=consumed.has_estimates,
            sales_total=sales_total,
            gross_margin=margin,
            margin_rate=(margin / sales_total * 100) if sales_total > 0 else 0.0,
            currency=self._currency,
        )
