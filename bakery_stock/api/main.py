"""FastAPI application for the stock ledger."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bakery_stock.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from bakery_stock.api.middleware.error_handler import setup_exception_handlers
from bakery_stock.api.routes import (
    health_router,
    materials_router,
    movements_router,
    reports_router,
    suppliers_router,
)
from bakery_stock.config import configure_logging, get_logger, get_settings
from bakery_stock.core.exceptions import ConfigurationError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Migrate, open the pool and load the stock snapshot; tear down in reverse."""
    from bakery_stock.application.services import get_stock_ledger_service, reset_services
    from bakery_stock.infrastructure.storage.sqlite import (
        close_pool,
        get_pool,
        reset_document_store,
    )
    from bakery_stock.infrastructure.storage.sqlite.migrations import run_migrations

    settings = get_settings()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        db_path=str(settings.storage.db_path),
    )

    try:
        results = await run_migrations()
        if not all(r.success for r in results):
            raise ConfigurationError("Database migrations failed; see migration_failed events")
        await get_pool()
        snapshot = await (await get_stock_ledger_service()).refresh()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    logger.info(
        "application_started",
        migrations_applied=len(results),
        materials=len(snapshot.materials),
        movements=len(snapshot.movements),
    )

    yield

    reset_services()
    reset_document_store()
    await close_pool()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Raw material stock ledger with weighted-average cost (PMP) valuation",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(materials_router)
    app.include_router(movements_router)
    app.include_router(suppliers_router)
    app.include_router(reports_router)

    # Liveness probe that never touches the database
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Simple health check at root level."""
        return {
            "status": "healthy",
            "version": settings.app_version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bakery_stock.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
