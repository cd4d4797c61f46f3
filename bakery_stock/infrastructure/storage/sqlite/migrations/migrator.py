"""
Versioned schema migrations for the stock database.

Migration files live next to this module as ``vNNN_name.sql``. Applied
versions and their checksums are recorded in ``schema_migrations``; an
applied file whose checksum changed stops the run. The database file is
copied aside before migrating and put back if the run raises.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from bakery_stock.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
_FILENAME_RE = re.compile(r"v(\d+)_(.+)\.sql")

# Columns the document store relies on
DOCUMENT_COLUMNS = frozenset({"collection", "id", "data", "version", "created_at", "updated_at"})


@dataclass
class MigrationInfo:
    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME_RE.match(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest)


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration files sorted by version; badly named files are skipped."""
    found = []
    for path in sorted(directory.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied version -> checksum. Empty before the first migration."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


async def apply_migration(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    """Run one migration script and record it. Failures are returned, not raised."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(migration.version, migration.name, False, elapsed_ms(), str(e))

    result = MigrationResult(migration.version, migration.name, True, elapsed_ms())
    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=result.execution_time_ms,
    )
    return result


def create_backup(db_path: Path) -> Path:
    backup_path = db_path.with_suffix(f".backup_{datetime.now():%Y%m%d_%H%M%S}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


async def run_migrations(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Apply every pending migration in version order.

    Returns one result per migration attempted; an empty list means the
    schema was already current. Stops at the first failure.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            applied = await get_applied_migrations(conn)

            for migration in discover_migrations():
                checksum = applied.get(migration.version)
                if checksum == migration.checksum:
                    continue
                if checksum is not None:
                    logger.error("migration_checksum_changed", version=migration.version)
                    break

                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path and backup_path.exists():
            restore_backup(db_path, backup_path)
        raise

    if backup_path and all(r.success for r in results):
        backup_path.unlink()

    return results


async def get_migration_status(db_path: Path | None = None) -> dict:
    db_path = db_path or get_settings().storage.db_path
    if not db_path.exists():
        return {"exists": False, "current_version": None, "pending_migrations": []}

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return {
        "exists": True,
        "current_version": max(applied) if applied else None,
        "pending_migrations": [m.version for m in discover_migrations() if m.version not in applied],
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """SQLite integrity check plus the document table shape."""
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        cursor = await conn.execute("PRAGMA table_info(documents)")
        columns = {row[1] for row in await cursor.fetchall()}

    missing = sorted(DOCUMENT_COLUMNS - columns)
    return [
        {"check": "integrity", "status": "PASS" if integrity == "ok" else "FAIL", "result": integrity},
        {"check": "documents_table", "status": "FAIL" if missing else "PASS", "missing": missing},
    ]
