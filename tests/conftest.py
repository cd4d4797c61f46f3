"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from bakery_stock.application.services import reset_services
from bakery_stock.config import reset_settings
from bakery_stock.core.entities import RawMaterial, Supplier, UnitOfMeasure
from bakery_stock.core.services import StockLedgerService
from bakery_stock.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteDocumentStore,
    reset_document_store,
)
from bakery_stock.infrastructure.storage.sqlite.migrations import run_migrations


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point settings at a throwaway data directory and drop singletons."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    reset_services()
    reset_document_store()
    yield
    reset_settings()
    reset_services()
    reset_document_store()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "stock.db"


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with the full schema applied."""
    await run_migrations(temp_db_path, create_backup_before=False)
    return temp_db_path


@pytest.fixture
async def pool(migrated_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    pool = ConnectionPool(migrated_db, pool_size=3, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def store(pool: ConnectionPool) -> SQLiteDocumentStore:
    return SQLiteDocumentStore(pool=pool, max_transaction_attempts=5)


@pytest.fixture
def ledger(store: SQLiteDocumentStore) -> StockLedgerService:
    return StockLedgerService(store, currency="FCFA")


@pytest.fixture
def flour() -> RawMaterial:
    """Farine T55 with no opening stock."""
    return RawMaterial(name="Farine T55", unit=UnitOfMeasure.KILOGRAM, reorder_threshold=25)


@pytest.fixture
def sugar() -> RawMaterial:
    """Sucre with 10 kg in stock at 800 per kg."""
    return RawMaterial(
        name="Sucre",
        unit=UnitOfMeasure.KILOGRAM,
        current_stock=10,
        weighted_average_cost=800,
        reorder_threshold=5,
    )


@pytest.fixture
def sample_supplier() -> Supplier:
    return Supplier(
        name="Grands Moulins",
        contact="M. Diallo",
        phone="+221 33 000 00 00",
        categories=["farine"],
    )


@pytest.fixture
def period() -> tuple[datetime, datetime]:
    """A period wide enough to contain every movement recorded by tests."""
    return datetime(2000, 1, 1, tzinfo=UTC), datetime(2100, 1, 1, tzinfo=UTC)
