"""Unit tests for the database migrator."""

from pathlib import Path

import aiosqlite
import pytest

from bakery_stock.infrastructure.storage.sqlite.migrations.migrator import (
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_current_version,
    get_migration_status,
    run_migrations,
    restore_backup,
    verify_schema_integrity,
)


class TestMigrationInfo:
    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v002_add_index.sql"
        migration_file.write_text("SELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "002"
        assert info.name == "add_index"
        assert len(info.checksum) == 16

    def test_from_file_invalid_filename_raises(self, tmp_path: Path):
        invalid_file = tmp_path / "schema.sql"
        invalid_file.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(invalid_file)


class TestDiscoverMigrations:
    def test_documents_migration_shipped(self):
        migrations = discover_migrations()
        assert migrations[0].version == "001"
        assert migrations[0].name == "documents"


class TestInitializeDatabase:
    async def test_fresh_database(self, temp_db_path: Path):
        results = await run_migrations(temp_db_path)

        assert results and all(r.success for r in results)
        async with aiosqlite.connect(temp_db_path) as conn:
            assert await get_current_version(conn) == "001"

    async def test_second_run_applies_nothing(self, temp_db_path: Path):
        await run_migrations(temp_db_path)
        assert await run_migrations(temp_db_path) == []

    async def test_backup_removed_after_success(self, temp_db_path: Path):
        await run_migrations(temp_db_path)
        await run_migrations(temp_db_path)
        assert list(temp_db_path.parent.glob("*.backup_*")) == []

    async def test_status(self, temp_db_path: Path):
        status = await get_migration_status(temp_db_path)
        assert status["exists"] is False

        await run_migrations(temp_db_path)
        status = await get_migration_status(temp_db_path)
        assert status["current_version"] == "001"
        assert status["pending_migrations"] == []

    async def test_verify_schema(self, migrated_db: Path):
        checks = {c["check"]: c for c in await verify_schema_integrity(migrated_db)}
        assert checks["integrity"]["status"] == "PASS"
        assert checks["documents_table"]["status"] == "PASS"


class TestBackup:
    def test_backup_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "stock.db"
        db_path.write_bytes(b"original")

        backup_path = create_backup(db_path)
        db_path.write_bytes(b"broken")
        restore_backup(db_path, backup_path)

        assert db_path.read_bytes() == b"original"
