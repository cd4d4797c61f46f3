"""
Abstract interface for generic document persistence.

The ledger only needs collection/id addressed JSON documents, a filtered
query and an optimistic read-modify-write transaction.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Literal, TypeVar

T = TypeVar("T")

FilterOp = Literal["==", "!=", "<", "<=", ">", ">=", "in"]
QueryFilter = tuple[str, FilterOp, Any]


class ITransaction(ABC):
    """
    Read/write handle passed to a transaction function.

    Reads go to the store and remember the version they saw; writes are
    buffered and applied at commit only if none of the read documents changed.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Read a document (with its ``id``) or None if absent."""

    @abstractmethod
    def create(self, collection: str, data: dict[str, Any]) -> str:
        """Buffer a new document and return its generated id."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Buffer a partial update of an existing document."""


class IDocumentStore(ABC):
    """Interface for collection-based document persistence."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a document by ID, including its ``id`` key."""

    @abstractmethod
    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        """Get every document of a collection."""

    @abstractmethod
    async def create(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document and return the generated ID."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Merge ``data`` into an existing document."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False when it did not exist."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: list[QueryFilter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Filter documents with ``(field, op, value)`` conditions."""

    @abstractmethod
    async def run_transaction(self, fn: Callable[[ITransaction], Awaitable[T]]) -> T:
        """
        Run ``fn`` inside an optimistic transaction.

        The whole function is re-run when a document it read was changed by a
        concurrent writer; exhausting the retry budget raises
        ConcurrencyConflictError.
        """
