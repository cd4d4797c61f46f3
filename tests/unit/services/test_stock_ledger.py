"""Tests for StockLedgerService against a real SQLite document store."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from bakery_stock.core.entities import (
    MovementType,
    RawMaterial,
    StockMovement,
    Supplier,
    UnitOfMeasure,
)
from bakery_stock.core.exceptions import (
    MaterialNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)
from bakery_stock.core.services import MATERIALS, MOVEMENTS, StockLedgerService
from bakery_stock.infrastructure.storage.sqlite import SQLiteDocumentStore


async def purchase(ledger: StockLedgerService, material_id: str, qty: float, price: float, **kw):
    return await ledger.record_movement(
        material_id,
        MovementType.PURCHASE,
        qty,
        total_price=price,
        author=kw.pop("author", "Awa"),
        **kw,
    )


async def consume(ledger: StockLedgerService, material_id: str, qty: float, **kw):
    return await ledger.record_movement(
        material_id,
        kw.pop("movement_type", MovementType.CONSUMPTION),
        qty,
        author=kw.pop("author", "Moussa"),
        validator=kw.pop("validator", "Chef Ibrahima"),
        **kw,
    )


class TestMaterials:
    async def test_add_material_assigns_id_and_value(
        self, ledger: StockLedgerService, sugar: RawMaterial
    ):
        created = await ledger.add_material(sugar)
        assert created.id
        assert created.total_value == 8000

        stored = await ledger.get_material(created.id)
        assert stored.name == "Sucre"
        assert stored.weighted_average_cost == 800

    async def test_add_material_strips_name(self, ledger: StockLedgerService):
        created = await ledger.add_material(RawMaterial(name="  Sel  ", unit=UnitOfMeasure.KILOGRAM))
        assert created.name == "Sel"

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"name": "   "}, "name"),
            ({"weighted_average_cost": -1}, "weighted_average_cost"),
            ({"reorder_threshold": -1}, "reorder_threshold"),
        ],
    )
    async def test_add_material_validation(
        self, ledger: StockLedgerService, sugar: RawMaterial, overrides, field
    ):
        with pytest.raises(ValidationError) as exc_info:
            await ledger.add_material(sugar.model_copy(update=overrides))
        assert exc_info.value.details["field"] == field

    async def test_get_missing_material(self, ledger: StockLedgerService):
        with pytest.raises(MaterialNotFoundError):
            await ledger.get_material("nope")

    async def test_update_metadata(self, ledger: StockLedgerService, sugar: RawMaterial):
        created = await ledger.add_material(sugar)
        updated = await ledger.update_material(
            created.id, {"name": "Sucre en poudre", "reorder_threshold": 8}
        )
        assert updated.name == "Sucre en poudre"
        assert updated.is_low_stock is False

        stored = await ledger.get_material(created.id)
        assert stored.reorder_threshold == 8
        assert stored.current_stock == 10

    async def test_update_rejects_valuation_fields(
        self, ledger: StockLedgerService, sugar: RawMaterial
    ):
        created = await ledger.add_material(sugar)
        with pytest.raises(ValidationError) as exc_info:
            await ledger.update_material(created.id, {"current_stock": 99})
        assert exc_info.value.details["field"] == "current_stock"
        assert (await ledger.get_material(created.id)).current_stock == 10

    async def test_update_rejects_unknown_unit(
        self, ledger: StockLedgerService, sugar: RawMaterial
    ):
        created = await ledger.add_material(sugar)
        with pytest.raises(ValidationError):
            await ledger.update_material(created.id, {"unit": "barrel"})

    async def test_delete_keeps_movements(self, ledger: StockLedgerService, sugar: RawMaterial):
        created = await ledger.add_material(sugar)
        await consume(ledger, created.id, 1)

        await ledger.delete_material(created.id)

        with pytest.raises(MaterialNotFoundError):
            await ledger.get_material(created.id)
        assert len(await ledger.list_movements(created.id)) == 1

    async def test_delete_missing(self, ledger: StockLedgerService):
        with pytest.raises(MaterialNotFoundError):
            await ledger.delete_material("nope")

    async def test_list_sorted_and_filtered(self, ledger: StockLedgerService):
        await ledger.add_material(RawMaterial(name="sel", unit=UnitOfMeasure.KILOGRAM))
        await ledger.add_material(
            RawMaterial(name="Beurre", unit=UnitOfMeasure.KILOGRAM, active=False)
        )
        await ledger.add_material(RawMaterial(name="Levure", unit=UnitOfMeasure.GRAM))

        assert [m.name for m in await ledger.list_materials()] == ["Beurre", "Levure", "sel"]
        assert [m.name for m in await ledger.list_materials(active_only=True)] == [
            "Levure",
            "sel",
        ]

    async def test_low_stock(self, ledger: StockLedgerService, flour: RawMaterial, sugar):
        await ledger.add_material(flour)
        await ledger.add_material(sugar)
        assert [m.name for m in await ledger.low_stock_materials()] == ["Farine T55"]

    async def test_inactive_material_never_low_stock(
        self, ledger: StockLedgerService, flour: RawMaterial, period
    ):
        await ledger.add_material(flour.model_copy(update={"active": False}))

        assert await ledger.low_stock_materials() == []
        dashboard = await ledger.stock_dashboard(*period)
        assert dashboard.low_stock_count == 0


class TestRecordMovement:
    async def test_flour_scenario(self, ledger: StockLedgerService, flour: RawMaterial, period):
        material = await ledger.add_material(flour)

        result = await purchase(ledger, material.id, 100, 50_000)
        assert result.material.current_stock == 100
        assert result.material.weighted_average_cost == 500
        assert result.material.total_value == 50_000

        result = await consume(ledger, material.id, 20)
        assert result.material.current_stock == 80
        assert result.material.weighted_average_cost == 500
        assert result.material.total_value == 40_000
        assert result.movement.total_price == 10_000
        assert result.movement.quantity == -20

        assert await ledger.consumed_value(*period) == 10_000

        result = await purchase(ledger, material.id, 50, 20_000)
        assert result.material.current_stock == 130
        assert result.material.weighted_average_cost == pytest.approx(461.54, abs=0.01)
        assert result.material.total_value == pytest.approx(60_000)

        stored = await ledger.get_material(material.id)
        assert stored.current_stock == 130
        assert stored.total_value == pytest.approx(60_000)

    async def test_movement_persisted_with_audit_fields(
        self, ledger: StockLedgerService, store: SQLiteDocumentStore, sugar: RawMaterial
    ):
        material = await ledger.add_material(sugar)
        when = datetime(2024, 3, 5, 7, 30)

        result = await consume(
            ledger,
            material.id,
            2,
            movement_type=MovementType.LOSS,
            date=when,
            reason="sac percé",
            document_reference="BL-17",
            user_id="u1",
        )

        doc = await store.get(MOVEMENTS, result.movement.id)
        movement = StockMovement.model_validate(doc)
        assert movement.type == MovementType.LOSS
        assert movement.quantity == -2
        assert movement.unit_price == 800
        assert movement.total_price == 1_600
        assert movement.author == "Moussa"
        assert movement.validator == "Chef Ibrahima"
        assert movement.reason == "sac percé"
        assert movement.document_reference == "BL-17"
        assert movement.date == when.replace(tzinfo=UTC)

    async def test_purchase_without_validator_succeeds(
        self, ledger: StockLedgerService, flour: RawMaterial
    ):
        material = await ledger.add_material(flour)
        result = await purchase(ledger, material.id, 10, 5_000)
        assert result.movement.validator is None

    @pytest.mark.parametrize("validator", [None, "", "   "])
    async def test_outflow_without_validator_rejected(
        self, ledger: StockLedgerService, sugar: RawMaterial, validator
    ):
        material = await ledger.add_material(sugar)
        with pytest.raises(ValidationError) as exc_info:
            await consume(ledger, material.id, 1, validator=validator)
        assert exc_info.value.details["field"] == "validator"
        assert await ledger.list_movements() == []
        assert (await ledger.get_material(material.id)).current_stock == 10

    @pytest.mark.parametrize("quantity", [0, -5])
    async def test_non_positive_quantity_rejected(
        self, ledger: StockLedgerService, sugar: RawMaterial, quantity
    ):
        material = await ledger.add_material(sugar)
        with pytest.raises(ValidationError):
            await consume(ledger, material.id, quantity)

    async def test_unknown_type_rejected(self, ledger: StockLedgerService, sugar: RawMaterial):
        material = await ledger.add_material(sugar)
        with pytest.raises(ValidationError) as exc_info:
            await consume(ledger, material.id, 1, movement_type="theft")
        assert exc_info.value.details["field"] == "type"

    async def test_purchase_requires_price(self, ledger: StockLedgerService, flour: RawMaterial):
        material = await ledger.add_material(flour)
        with pytest.raises(ValidationError) as exc_info:
            await ledger.record_movement(material.id, "purchase", 10, author="Awa")
        assert exc_info.value.details["field"] == "total_price"

    async def test_author_required(self, ledger: StockLedgerService, flour: RawMaterial):
        material = await ledger.add_material(flour)
        with pytest.raises(ValidationError) as exc_info:
            await ledger.record_movement(material.id, "purchase", 10, total_price=1, author=" ")
        assert exc_info.value.details["field"] == "author"

    async def test_validation_happens_before_store(self):
        store = AsyncMock()
        ledger = StockLedgerService(store)
        with pytest.raises(ValidationError):
            await ledger.record_movement("m1", "consumption", 1, author="Awa")
        store.run_transaction.assert_not_called()

    async def test_unknown_material(self, ledger: StockLedgerService):
        with pytest.raises(MaterialNotFoundError):
            await purchase(ledger, "nope", 1, 100)
        assert await ledger.list_movements() == []

    async def test_signed_correction(self, ledger: StockLedgerService, sugar: RawMaterial):
        material = await ledger.add_material(sugar)

        up = await consume(ledger, material.id, 1.5, movement_type=MovementType.CORRECTION)
        assert up.material.current_stock == 11.5

        down = await consume(ledger, material.id, -3, movement_type=MovementType.CORRECTION)
        assert down.material.current_stock == 8.5
        assert down.movement.quantity == -3
        assert down.material.weighted_average_cost == 800

    async def test_zero_correction_rejected(self, ledger: StockLedgerService, sugar: RawMaterial):
        material = await ledger.add_material(sugar)
        with pytest.raises(ValidationError):
            await consume(ledger, material.id, 0, movement_type=MovementType.CORRECTION)

    async def test_stock_may_go_negative(self, ledger: StockLedgerService, sugar: RawMaterial):
        material = await ledger.add_material(sugar)
        result = await consume(ledger, material.id, 12)
        assert result.material.current_stock == -2
        assert result.material.total_value == -1_600

    async def test_supplier_return_keeps_pmp(
        self, ledger: StockLedgerService, flour: RawMaterial, period
    ):
        material = await ledger.add_material(flour)
        await purchase(ledger, material.id, 100, 50_000)
        result = await consume(
            ledger, material.id, 10, movement_type=MovementType.SUPPLIER_RETURN
        )
        assert result.material.weighted_average_cost == 500
        assert result.material.total_value == 45_000
        # A return is not cost of goods consumed
        assert await ledger.consumed_value(*period) == 0

    async def test_concurrent_movements_do_not_lose_updates(
        self, ledger: StockLedgerService, store: SQLiteDocumentStore, flour: RawMaterial
    ):
        material = await ledger.add_material(flour)
        await purchase(ledger, material.id, 100, 50_000)

        await asyncio.gather(
            consume(ledger, material.id, 10),
            consume(ledger, material.id, 15),
            purchase(ledger, material.id, 20, 10_000),
        )

        stored = await ledger.get_material(material.id)
        assert stored.current_stock == 95
        assert stored.total_value == pytest.approx(95 * 500)
        assert len(await store.query(MOVEMENTS, [("material_id", "==", material.id)])) == 4

    async def test_interleaved_writer_forces_retry(
        self, ledger: StockLedgerService, store: SQLiteDocumentStore, sugar: RawMaterial
    ):
        material = await ledger.add_material(sugar)
        run_transaction = store.run_transaction
        interfered = False

        async def racing(fn):
            async def wrapped(txn):
                nonlocal interfered
                result = await fn(txn)
                if not interfered:
                    interfered = True
                    # Another till records stock between our read and commit
                    await store.update(MATERIALS, material.id, {"current_stock": 20})
                return result

            return await run_transaction(wrapped)

        store.run_transaction = racing
        result = await consume(ledger, material.id, 5)

        assert result.valuation.stock_before == 20
        assert result.material.current_stock == 15
        assert (await ledger.get_material(material.id)).current_stock == 15


class TestConvertUnit:
    async def test_bags_to_kilograms(self, ledger: StockLedgerService):
        bags = await ledger.add_material(
            RawMaterial(
                name="Farine (sacs)",
                unit=UnitOfMeasure.BAG_50KG,
                current_stock=4,
                weighted_average_cost=15_000,
                reorder_threshold=1,
            )
        )

        converted = await ledger.convert_unit(bags.id, 50, "kg")

        assert converted.unit == UnitOfMeasure.KILOGRAM
        assert converted.current_stock == 200
        assert converted.weighted_average_cost == 300
        assert converted.reorder_threshold == 50
        assert converted.total_value == pytest.approx(60_000)

        stored = await ledger.get_material(bags.id)
        assert stored.current_stock * stored.weighted_average_cost == pytest.approx(60_000)
        assert await ledger.list_movements() == []

    async def test_same_unit_rejected(self, ledger: StockLedgerService, sugar: RawMaterial):
        material = await ledger.add_material(sugar)
        with pytest.raises(ValidationError):
            await ledger.convert_unit(material.id, 1000, UnitOfMeasure.KILOGRAM)

    async def test_unknown_unit_rejected(self, ledger: StockLedgerService, sugar: RawMaterial):
        material = await ledger.add_material(sugar)
        with pytest.raises(ValidationError):
            await ledger.convert_unit(material.id, 1000, "tonne")

    @pytest.mark.parametrize("factor", [0, -1, float("nan")])
    async def test_bad_factor_rejected(
        self, ledger: StockLedgerService, sugar: RawMaterial, factor
    ):
        material = await ledger.add_material(sugar)
        with pytest.raises(ValidationError):
            await ledger.convert_unit(material.id, factor, "g")

    async def test_missing_material(self, ledger: StockLedgerService):
        with pytest.raises(MaterialNotFoundError):
            await ledger.convert_unit("nope", 1000, "g")


class TestSuppliers:
    async def test_crud(self, ledger: StockLedgerService, sample_supplier: Supplier):
        created = await ledger.add_supplier(sample_supplier)
        assert (await ledger.get_supplier(created.id)).name == "Grands Moulins"

        updated = await ledger.update_supplier(created.id, {"phone": "77 000 00 00"})
        assert updated.phone == "77 000 00 00"
        assert [s.phone for s in await ledger.list_suppliers()] == ["77 000 00 00"]

        await ledger.delete_supplier(created.id)
        with pytest.raises(SupplierNotFoundError):
            await ledger.get_supplier(created.id)

    async def test_blank_name_rejected(self, ledger: StockLedgerService):
        with pytest.raises(ValidationError):
            await ledger.add_supplier(Supplier(name=" "))

    async def test_unknown_field_rejected(
        self, ledger: StockLedgerService, sample_supplier: Supplier
    ):
        created = await ledger.add_supplier(sample_supplier)
        with pytest.raises(ValidationError):
            await ledger.update_supplier(created.id, {"rating": 5})

    async def test_active_only(self, ledger: StockLedgerService):
        await ledger.add_supplier(Supplier(name="B", active=False))
        await ledger.add_supplier(Supplier(name="A"))
        assert [s.name for s in await ledger.list_suppliers(active_only=True)] == ["A"]

    async def test_null_update_rejected_and_supplier_kept(
        self, ledger: StockLedgerService, sample_supplier: Supplier
    ):
        created = await ledger.add_supplier(sample_supplier)

        with pytest.raises(ValidationError) as exc_info:
            await ledger.update_supplier(created.id, {"active": None})
        assert exc_info.value.details["field"] == "active"

        with pytest.raises(ValidationError):
            await ledger.update_supplier(created.id, {"categories": None})

        suppliers = await ledger.list_suppliers()
        assert [s.id for s in suppliers] == [created.id]
        assert suppliers[0].active is True


class TestSnapshot:
    async def test_stale_until_loaded_and_after_writes(
        self, ledger: StockLedgerService, sugar: RawMaterial
    ):
        assert ledger.is_stale is True
        await ledger.refresh()
        assert ledger.is_stale is False

        await ledger.add_material(sugar)
        assert ledger.is_stale is True
        assert len(await ledger.list_materials()) == 1
        assert ledger.is_stale is False

    async def test_outside_writes_visible_after_refresh(
        self, ledger: StockLedgerService, store: SQLiteDocumentStore, sugar: RawMaterial
    ):
        await ledger.list_materials()
        await store.create(MATERIALS, sugar.to_record())

        assert await ledger.list_materials() == []
        await ledger.refresh()
        assert len(await ledger.list_materials()) == 1

    async def test_malformed_records_skipped(
        self, ledger: StockLedgerService, store: SQLiteDocumentStore, sugar: RawMaterial
    ):
        await ledger.add_material(sugar)
        await store.create(MATERIALS, {"name": "Legacy", "unit": "barrel"})
        await store.create(MOVEMENTS, {"quantity": "lots"})

        assert [m.name for m in await ledger.list_materials()] == ["Sucre"]
        assert await ledger.list_movements() == []

    async def test_movements_newest_first(self, ledger: StockLedgerService, sugar: RawMaterial):
        material = await ledger.add_material(sugar)
        base = datetime(2024, 3, 1, tzinfo=UTC)
        await consume(ledger, material.id, 1, date=base + timedelta(days=2))
        await consume(ledger, material.id, 1, date=base)
        await consume(ledger, material.id, 1, date=base + timedelta(days=5))

        dates = [m.date for m in await ledger.list_movements(material.id)]
        assert dates == sorted(dates, reverse=True)

    async def test_write_during_reload_is_not_lost(
        self, ledger: StockLedgerService, store: SQLiteDocumentStore, flour: RawMaterial
    ):
        material = await ledger.add_material(flour)
        await purchase(ledger, material.id, 100, 50_000)

        get_all = store.get_all
        loading = asyncio.Event()
        release = asyncio.Event()

        async def slow_get_all(collection):
            docs = await get_all(collection)
            if collection == MOVEMENTS and not release.is_set():
                loading.set()
                await release.wait()
            return docs

        store.get_all = slow_get_all
        reader = asyncio.create_task(ledger.list_movements())
        await loading.wait()

        # A second purchase commits while the reload holds pre-commit rows
        await purchase(ledger, material.id, 50, 20_000)
        release.set()
        assert len(await reader) == 1

        assert ledger.is_stale is True
        assert len(await ledger.list_movements()) == 2
        assert await ledger.total_purchase_cost(
            datetime(2000, 1, 1, tzinfo=UTC), datetime(2100, 1, 1, tzinfo=UTC)
        ) == pytest.approx(70_000)


class TestAggregations:
    async def test_consumed_value_is_idempotent(
        self, ledger: StockLedgerService, flour: RawMaterial, period
    ):
        material = await ledger.add_material(flour)
        await purchase(ledger, material.id, 100, 50_000)
        await consume(ledger, material.id, 20)
        await consume(ledger, material.id, 2, movement_type=MovementType.LOSS)

        first = await ledger.consumed_value(*period)
        second = await ledger.consumed_value(*period)
        assert first == second == 11_000

    async def test_legacy_movement_estimated(
        self, ledger: StockLedgerService, store: SQLiteDocumentStore, sugar: RawMaterial, period
    ):
        material = await ledger.add_material(sugar)
        legacy = StockMovement(
            date=datetime(2024, 3, 1, tzinfo=UTC),
            material_id=material.id,
            type=MovementType.CONSUMPTION,
            quantity=-2,
        )
        await store.create(MOVEMENTS, legacy.to_record())
        await ledger.refresh()

        report = await ledger.consumed_value_report(*period)
        assert report.total == 1_600
        assert report.has_estimates is True
        assert report.lines[0].is_estimated is True

    async def test_total_purchase_cost_period_and_material(
        self, ledger: StockLedgerService, flour: RawMaterial, sugar: RawMaterial
    ):
        flour_id = (await ledger.add_material(flour)).id
        sugar_id = (await ledger.add_material(sugar)).id
        march = datetime(2024, 3, 10, tzinfo=UTC)
        april = datetime(2024, 4, 10, tzinfo=UTC)

        await purchase(ledger, flour_id, 100, 50_000, date=march)
        await purchase(ledger, sugar_id, 10, 9_000, date=march)
        await purchase(ledger, flour_id, 50, 20_000, date=april)

        start = datetime(2024, 3, 1, tzinfo=UTC)
        end = datetime(2024, 3, 31, 23, 59, 59, tzinfo=UTC)
        assert await ledger.total_purchase_cost(start, end) == 59_000
        assert await ledger.total_purchase_cost(start, end, flour_id) == 50_000

    async def test_dashboard(self, ledger: StockLedgerService, flour: RawMaterial, period):
        material = await ledger.add_material(flour)
        await purchase(ledger, material.id, 100, 50_000)
        await consume(ledger, material.id, 80)

        dashboard = await ledger.stock_dashboard(*period, sales_total=100_000)

        assert dashboard.total_stock_value == 10_000
        assert dashboard.low_stock_count == 1
        assert dashboard.purchase_cost == 50_000
        assert dashboard.consumed_value == 40_000
        assert dashboard.consumed_value_is_estimated is False
        assert dashboard.gross_margin == 60_000
        assert dashboard.margin_rate == 60
        assert dashboard.currency == "FCFA"

    async def test_dashboard_without_sales(self, ledger: StockLedgerService, period):
        dashboard = await ledger.stock_dashboard(*period)
        assert dashboard.margin_rate == 0
        assert dashboard.total_stock_value == 0
