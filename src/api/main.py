"""
ASGI entry point for the stock ledger API.

Run with ``uvicorn src.api.main:app`` or ``python -m src.api.main``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    health_router,
    products_router,
    stock_router,
    transactions_router,
)
from src.application.services import reset_services
from src.config import configure_logging, get_logger, get_settings
from src.infrastructure.storage import close_storage

logger = get_logger(__name__)


async def _prepare_sqlite() -> None:
    """Apply pending migrations, then open the pool."""
    from src.infrastructure.storage.sqlite import get_pool
    from src.infrastructure.storage.sqlite.migrations import run_migrations

    results = await run_migrations()
    for result in results:
        if not result.success:
            logger.error("database_migration_failed", version=result.version, error=result.error)
            raise RuntimeError(f"Migration v{result.version} failed: {result.error}")
    logger.info("database_ready", migrations_applied=len(results))

    await get_pool()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        "application_starting",
        storage_backend=settings.storage.backend,
        host=settings.api.host,
        port=settings.api.port,
    )

    # The memory backend has no schema and no pool
    if settings.storage.backend == "sqlite":
        await _prepare_sqlite()

    yield

    await close_storage()
    reset_services()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="Paint Stock Ledger API",
        description="Append-only stock ledger: transactions, stock cards and audits",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Starlette runs the last added middleware first
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    for router in (health_router, products_router, transactions_router, stock_router):
        app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def liveness() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    api = get_settings().api
    uvicorn.run("src.api.main:app", host=api.host, port=api.port, reload=api.debug)
