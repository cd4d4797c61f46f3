"""API middleware."""

from bakery_stock.api.middleware.error_handler import ErrorHandlerMiddleware
from bakery_stock.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
