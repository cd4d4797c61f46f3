"""Core domain layer - entities, interfaces, exceptions and services."""

from bakery_stock.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
