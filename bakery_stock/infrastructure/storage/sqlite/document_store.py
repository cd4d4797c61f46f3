"""
SQLite implementation of the generic document store.

Documents are JSON blobs keyed by ``(collection, id)`` with a version
counter. Transactions are optimistic: reads remember the version they saw,
writes are buffered, and commit re-checks every read version under
``BEGIN IMMEDIATE`` before applying anything.
"""

import json
import re
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, TypeVar

import aiosqlite

from bakery_stock.config import get_logger, get_settings
from bakery_stock.core.exceptions import (
    ConcurrencyConflictError,
    DocumentNotFoundError,
    PersistenceError,
    TransactionConflict,
    ValidationError,
)
from bakery_stock.core.interfaces.storage import IDocumentStore, ITransaction, QueryFilter
from bakery_stock.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

T = TypeVar("T")

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COMPARISON_OPS = {"==": "=", "!=": "!=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _json_path(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise ValidationError("field", "Invalid document field name", field)
    return f"$.{field}"


@asynccontextmanager
async def _guard(operation: str) -> AsyncIterator[None]:
    """Translate driver failures into PersistenceError."""
    try:
        yield
    except aiosqlite.Error as e:
        logger.error("persistence_failed", operation=operation, error=str(e))
        raise PersistenceError(operation, str(e)) from e


class SQLiteTransaction(ITransaction):
    """Buffered transaction handle used by SQLiteDocumentStore.run_transaction."""

    def __init__(self, store: "SQLiteDocumentStore"):
        self._store = store
        # (collection, id) -> version seen, None when the document was absent
        self.reads: dict[tuple[str, str], int | None] = {}
        self.creates: list[tuple[str, str, dict[str, Any]]] = []
        self.updates: dict[tuple[str, str], dict[str, Any]] = {}

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        row = await self._store._fetch_row(collection, doc_id)
        key = (collection, doc_id)
        if key not in self.reads:
            self.reads[key] = row["version"] if row else None
        if row is None:
            return None
        doc = {**json.loads(row["data"]), "id": doc_id}
        doc.update(self.updates.get(key, {}))
        return doc

    def create(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = _new_id()
        self.creates.append((collection, doc_id, dict(data)))
        return doc_id

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.updates.setdefault((collection, doc_id), {}).update(data)


class SQLiteDocumentStore(IDocumentStore):
    """SQLite implementation of collection/document persistence."""

    def __init__(
        self,
        pool: ConnectionPool | None = None,
        max_transaction_attempts: int | None = None,
    ):
        self._pool = pool
        self._max_attempts = (
            max_transaction_attempts
            if max_transaction_attempts is not None
            else get_settings().ledger.max_transaction_attempts
        )

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def _fetch_row(self, collection: str, doc_id: str) -> aiosqlite.Row | None:
        pool = await self._get_pool()
        async with _guard("get"), pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT id, data, version FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            return await cursor.fetchone()

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        row = await self._fetch_row(collection, doc_id)
        if row is None:
            return None
        return self._row_to_document(row)

    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        """Get every document of a collection."""
        return await self.query(collection)

    async def create(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document with a generated ID."""
        doc_id = _new_id()
        now = _now()
        pool = await self._get_pool()
        async with _guard("create"), pool.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO documents (collection, id, data, version, created_at, updated_at)
                VALUES (?, ?, ?, 1, ?, ?)
                """,
                (collection, doc_id, json.dumps(data), now, now),
            )
        logger.debug("document_created", collection=collection, doc_id=doc_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing document and bump its version."""
        pool = await self._get_pool()
        async with _guard("update"), pool.transaction(immediate=True) as conn:
            await self._merge_update(conn, collection, doc_id, data)
        logger.debug("document_updated", collection=collection, doc_id=doc_id)

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document."""
        pool = await self._get_pool()
        async with _guard("delete"), pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            deleted = cursor.rowcount > 0
        logger.debug("document_deleted", collection=collection, doc_id=doc_id, deleted=deleted)
        return deleted

    async def query(
        self,
        collection: str,
        filters: list[QueryFilter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Filter documents on JSON fields."""
        clauses = ["collection = ?"]
        params: list[Any] = [collection]

        for field, op, value in filters or []:
            path = _json_path(field)
            if op == "in":
                values = list(value)
                if not values:
                    return []
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f"json_extract(data, '{path}') IN ({placeholders})")
                params.extend(values)
            elif op in _COMPARISON_OPS:
                clauses.append(f"json_extract(data, '{path}') {_COMPARISON_OPS[op]} ?")
                params.append(value)
            else:
                raise ValidationError("op", f"Unsupported filter operator '{op}'", op)

        sql = f"SELECT id, data, version FROM documents WHERE {' AND '.join(clauses)}"
        if order_by:
            direction = "DESC" if descending else "ASC"
            sql += f" ORDER BY json_extract(data, '{_json_path(order_by)}') {direction}, id"
        else:
            sql += " ORDER BY created_at, id"

        pool = await self._get_pool()
        async with _guard("query"), pool.acquire() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        return [self._row_to_document(row) for row in rows]

    async def run_transaction(self, fn: Callable[[ITransaction], Awaitable[T]]) -> T:
        """Run ``fn`` with optimistic concurrency, retrying on conflict."""
        conflict: TransactionConflict | None = None

        for attempt in range(1, self._max_attempts + 1):
            txn = SQLiteTransaction(self)
            result = await fn(txn)
            try:
                await self._commit(txn)
            except TransactionConflict as e:
                conflict = e
                logger.warning(
                    "transaction_conflict_retry",
                    collection=e.collection,
                    doc_id=e.doc_id,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                )
                continue
            return result

        logger.error("transaction_retries_exhausted", attempts=self._max_attempts)
        raise ConcurrencyConflictError(
            self._max_attempts,
            collection=conflict.collection if conflict else None,
            doc_id=conflict.doc_id if conflict else None,
        )

    async def _commit(self, txn: SQLiteTransaction) -> None:
        """Verify read versions and apply buffered writes atomically."""
        if not txn.creates and not txn.updates:
            return

        now = _now()
        pool = await self._get_pool()
        async with _guard("commit"), pool.transaction(immediate=True) as conn:
            for (collection, doc_id), seen_version in txn.reads.items():
                cursor = await conn.execute(
                    "SELECT version FROM documents WHERE collection = ? AND id = ?",
                    (collection, doc_id),
                )
                row = await cursor.fetchone()
                current_version = row["version"] if row else None
                if current_version != seen_version:
                    raise TransactionConflict(collection, doc_id)

            for collection, doc_id, data in txn.creates:
                await conn.execute(
                    """
                    INSERT INTO documents (collection, id, data, version, created_at, updated_at)
                    VALUES (?, ?, ?, 1, ?, ?)
                    """,
                    (collection, doc_id, json.dumps(data), now, now),
                )

            for (collection, doc_id), data in txn.updates.items():
                await self._merge_update(conn, collection, doc_id, data)

    @staticmethod
    async def _merge_update(
        conn: aiosqlite.Connection,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        cursor = await conn.execute(
            "SELECT data FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        if row is None:
            raise DocumentNotFoundError(collection, doc_id)

        merged = {**json.loads(row["data"]), **data}
        merged.pop("id", None)
        await conn.execute(
            """
            UPDATE documents
            SET data = ?, version = version + 1, updated_at = ?
            WHERE collection = ? AND id = ?
            """,
            (json.dumps(merged), _now(), collection, doc_id),
        )

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> dict[str, Any]:
        """Convert a database row to a plain document dict."""
        return {**json.loads(row["data"]), "id": row["id"]}
