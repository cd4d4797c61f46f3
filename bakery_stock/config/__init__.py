"""Configuration module."""

from bakery_stock.config.logging import configure_logging, get_logger
from bakery_stock.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
]
