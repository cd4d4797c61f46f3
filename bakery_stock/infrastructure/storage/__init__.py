"""Storage infrastructure implementations."""

from bakery_stock.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteDocumentStore,
    close_pool,
    get_document_store,
    get_pool,
)

__all__ = [
    "ConnectionPool",
    "SQLiteDocumentStore",
    "get_pool",
    "close_pool",
    "get_document_store",
]
