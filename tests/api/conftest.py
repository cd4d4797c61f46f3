"""Fixtures for API tests: the ledger is replaced by an AsyncMock."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from bakery_stock.api.dependencies import (
    get_convert_unit_use_case,
    get_ledger,
    get_record_movement_use_case,
)
from bakery_stock.api.main import app
from bakery_stock.application.use_cases import ConvertUnitUseCase, RecordMovementUseCase
from bakery_stock.core.entities import (
    MovementType,
    RawMaterial,
    StockMovement,
    Supplier,
    UnitOfMeasure,
)
from bakery_stock.core.services import StockLedgerService

NOW = datetime(2024, 3, 15, 9, 0, tzinfo=UTC)


@pytest.fixture
def flour_material() -> RawMaterial:
    return RawMaterial(
        id="flour-1",
        name="Farine T55",
        unit=UnitOfMeasure.KILOGRAM,
        current_stock=80,
        weighted_average_cost=500,
        total_value=40_000,
        reorder_threshold=25,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def consumption_movement() -> StockMovement:
    return StockMovement(
        id="mv-1",
        date=NOW,
        material_id="flour-1",
        type=MovementType.CONSUMPTION,
        quantity=-20,
        unit_price=500,
        total_price=10_000,
        author="Moussa",
        validator="Chef Ibrahima",
        created_at=NOW,
    )


@pytest.fixture
def supplier() -> Supplier:
    return Supplier(id="sup-1", name="Grands Moulins", created_at=NOW, updated_at=NOW)


@pytest.fixture
def mock_ledger() -> AsyncMock:
    return AsyncMock(spec=StockLedgerService)


@pytest.fixture
async def client(mock_ledger: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_ledger] = lambda: mock_ledger
    app.dependency_overrides[get_record_movement_use_case] = lambda: RecordMovementUseCase(
        mock_ledger
    )
    app.dependency_overrides[get_convert_unit_use_case] = lambda: ConvertUnitUseCase(mock_ledger)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_ledger, None)
    app.dependency_overrides.pop(get_record_movement_use_case, None)
    app.dependency_overrides.pop(get_convert_unit_use_case, None)
