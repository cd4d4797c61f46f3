"""SQLite storage implementations."""

from bakery_stock.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from bakery_stock.infrastructure.storage.sqlite.document_store import (
    SQLiteDocumentStore,
    SQLiteTransaction,
)

# Singleton instance
_document_store: SQLiteDocumentStore | None = None


async def get_document_store() -> SQLiteDocumentStore:
    """Get singleton document store instance."""
    global _document_store
    if _document_store is None:
        _document_store = SQLiteDocumentStore()
    return _document_store


def reset_document_store() -> None:
    """Drop the singleton (for testing)."""
    global _document_store
    _document_store = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Store classes
    "SQLiteDocumentStore",
    "SQLiteTransaction",
    # Factory functions
    "get_document_store",
    "reset_document_store",
]
