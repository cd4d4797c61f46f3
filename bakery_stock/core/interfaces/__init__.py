"""Core interfaces (ports) for dependency injection."""

from bakery_stock.core.interfaces.storage import (
    IDocumentStore,
    ITransaction,
    QueryFilter,
)

__all__ = [
    "IDocumentStore",
    "ITransaction",
    "QueryFilter",
]
