"""
codesync application entrypoint with database pool and sync engine lifecycle.
"""

import asyncio
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from codesync.config import settings
from codesync.db.pool import db_pool
from codesync.features.profile_sync.api import router as profile_sync_router
from codesync.features.profile_sync.bootstrap import build_sync_controller, create_http_client
from codesync.features.profile_sync.jobs import start_profile_sync_scheduler, start_sync_job_sweeper
from codesync.infrastructure.observability.logging import get_logger, setup_logging
from codesync.middleware.request_context import RequestContextMiddleware
from codesync.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


async def _cancel_task(task: asyncio.Task) -> None:
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    startup_tasks = []
    background_tasks: list[asyncio.Task] = []

    try:
        # Database pool first; the sync engine reads the roster through it
        logger.info("Initializing database pool")
        await db_pool.initialize()
        startup_tasks.append("database_pool")

        http_client = create_http_client()
        startup_tasks.append("http_client")

        controller = build_sync_controller(http_client)
        app.state.sync_controller = controller
        startup_tasks.append("sync_engine")

        background_tasks.append(asyncio.create_task(start_sync_job_sweeper(controller.store)))
        if settings.SYNC_SCHEDULE_ENABLED:
            background_tasks.append(asyncio.create_task(start_profile_sync_scheduler(controller)))

        logger.info("All services initialized successfully", services=startup_tasks)

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e), completed_tasks=startup_tasks)

        if "http_client" in startup_tasks:
            try:
                await http_client.aclose()
            except Exception as cleanup_error:
                logger.error("Error closing HTTP client", error=str(cleanup_error))

        if "database_pool" in startup_tasks:
            try:
                await db_pool.close()
            except Exception as cleanup_error:
                logger.error("Error cleaning up database pool", error=str(cleanup_error))

        raise

    yield

    # Shutdown sequence (reverse order)
    logger.info("Application shutting down")

    shutdown_errors = []

    for task in background_tasks:
        await _cancel_task(task)

    try:
        logger.info("Stopping sync engine")
        await controller.shutdown(timeout=settings.SYNC_SHUTDOWN_TIMEOUT_SECONDS)
    except Exception as e:
        logger.error("Error stopping sync engine", error=str(e))
        shutdown_errors.append(f"Sync engine: {e}")
    app.state.sync_controller = None

    try:
        await http_client.aclose()
    except Exception as e:
        logger.error("Error closing HTTP client", error=str(e))
        shutdown_errors.append(f"HTTP client: {e}")

    # Close database pool last (may have active connections)
    try:
        logger.info("Closing database pool")
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))
        shutdown_errors.append(f"Database: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="codesync",
    description="Bulk synchronization of coding platform profiles",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(profile_sync_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
