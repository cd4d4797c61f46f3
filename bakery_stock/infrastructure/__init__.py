"""Infrastructure layer implementations."""

from bakery_stock.infrastructure import storage

__all__ = ["storage"]
