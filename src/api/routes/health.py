"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from src.application.dto.responses import HealthResponse, StorageHealthResponse
from src.config import get_settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


async def check_storage() -> StorageHealthResponse:
    """Probe the configured storage backend."""
    backend = get_settings().storage.backend
    if backend == "memory":
        return StorageHealthResponse(backend=backend, available=True)

    from src.infrastructure.storage.sqlite import get_pool
    from src.infrastructure.storage.sqlite.migrations import get_migration_status

    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
        migrations = await get_migration_status()
    except Exception as e:
        return StorageHealthResponse(backend=backend, available=False, error=str(e))

    return StorageHealthResponse(
        backend=backend,
        available=True,
        schema_version=migrations.get("current_version"),
        pending_migrations=migrations.get("pending_migrations", []),
    )


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns uptime plus storage backend availability and schema version.
    """
    settings = get_settings()
    storage = await check_storage()

    if not storage.available:
        status = "unhealthy"
    elif storage.pending_migrations:
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        storage=storage,
    )
