"""
Service factory functions for dependency injection.

This module wires infrastructure implementations to core services.
Use cases and API dependencies should import from here.
"""

from typing import TYPE_CHECKING

from bakery_stock.config import get_settings
from bakery_stock.core.services import StockLedgerService

if TYPE_CHECKING:
    from bakery_stock.core.interfaces import IDocumentStore


# Singleton service instance
_stock_ledger_service: StockLedgerService | None = None


async def get_stock_ledger_service(
    document_store: "IDocumentStore | None" = None,
) -> StockLedgerService:
    """
    Get or create the StockLedgerService instance.

    One instance per process so that its snapshot is shared by every
    request. Passing a store builds a fresh, unshared instance.

    Args:
        document_store: Optional document store override

    Returns:
        Configured StockLedgerService
    """
    global _stock_ledger_service

    if document_store is not None:
        return _build_ledger(document_store)

    if _stock_ledger_service is None:
        # Lazy import infrastructure to avoid circular imports
        from bakery_stock.infrastructure.storage.sqlite import get_document_store

        _stock_ledger_service = _build_ledger(await get_document_store())

    return _stock_ledger_service


def _build_ledger(store: "IDocumentStore") -> StockLedgerService:
    settings = get_settings()
    return StockLedgerService(
        store=store,
        currency=settings.ledger.currency,
        value_tolerance=settings.ledger.value_tolerance,
    )


def reset_services() -> None:
    """
    Reset all singleton services.

    Useful for testing or reconfiguration.
    """
    global _stock_ledger_service
    _stock_ledger_service = None


__all__ = [
    "get_stock_ledger_service",
    "reset_services",
]
