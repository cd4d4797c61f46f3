"""API routes."""

from bakery_stock.api.routes.health import router as health_router
from bakery_stock.api.routes.materials import router as materials_router
from bakery_stock.api.routes.movements import router as movements_router
from bakery_stock.api.routes.reports import router as reports_router
from bakery_stock.api.routes.suppliers import router as suppliers_router

__all__ = [
    "health_router",
    "materials_router",
    "movements_router",
    "suppliers_router",
    "reports_router",
]
