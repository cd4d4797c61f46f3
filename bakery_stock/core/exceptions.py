"""
Domain exceptions for the stock ledger.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Lookup Exceptions
class NotFoundError(StockLedgerError):
    """Referenced entity does not exist."""

    pass


class DocumentNotFoundError(NotFoundError):
    """Document missing from a persistence collection."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(
            f"Document not found: {collection}/{doc_id}",
            code="DOCUMENT_NOT_FOUND",
            details={"collection": collection, "doc_id": doc_id},
        )


class MaterialNotFoundError(NotFoundError):
    """Raw material not found."""

    def __init__(self, material_id: str):
        super().__init__(
            f"Raw material not found: {material_id}",
            code="MATERIAL_NOT_FOUND",
            details={"material_id": material_id},
        )


class SupplierNotFoundError(NotFoundError):
    """Supplier not found."""

    def __init__(self, supplier_id: str):
        super().__init__(
            f"Supplier not found: {supplier_id}",
            code="SUPPLIER_NOT_FOUND",
            details={"supplier_id": supplier_id},
        )


# Validation Exceptions
class ValidationError(StockLedgerError):
    """Caller-supplied data violates a business rule."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Concurrency Exceptions
class ConcurrencyConflictError(StockLedgerError):
    """Optimistic transaction retries exhausted. Safe to resubmit."""

    def __init__(self, attempts: int, collection: str | None = None, doc_id: str | None = None):
        target = f"{collection}/{doc_id}" if collection and doc_id else "transaction"
        super().__init__(
            f"Concurrent update conflict on {target} after {attempts} attempts",
            code="CONCURRENCY_CONFLICT",
            details={
                "collection": collection,
                "doc_id": doc_id,
                "attempts": attempts,
                "retryable": True,
            },
        )


class TransactionConflict(Exception):
    """A document read inside a transaction changed before commit.

    Raised by persistence adapters to request a retry; never leaves the
    adapter's run_transaction loop.
    """

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} changed during transaction")
        self.collection = collection
        self.doc_id = doc_id


# Storage Exceptions
class StorageError(StockLedgerError):
    """Base exception for storage operations."""

    pass


class PersistenceError(StorageError):
    """Underlying store unavailable or failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Persistence error during {operation}: {error}",
            code="PERSISTENCE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(StockLedgerError):
    """Configuration error."""

    pass
