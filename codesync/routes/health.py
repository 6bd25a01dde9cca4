"""
Health check endpoints with database pool and sync engine status.
"""

import time

from fastapi import APIRouter, Request

from codesync.config import settings
from codesync.db.pool import db_health_check

router = APIRouter(tags=["Health"])


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "codesync"}


@router.get("/readyz")
async def readyz(request: Request):
    """
    Readiness check covering the database pool and the sync engine.
    """
    checks = {}
    overall_ok = True

    # 1) Database pool
    t0 = time.time()
    try:
        db_health = await db_health_check()
        is_healthy = db_health.get("healthy", False)

        checks["database"] = {
            "ok": is_healthy,
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }

        if "pool_stats" in db_health:
            pool_stats = db_health["pool_stats"]
            checks["database"].update(
                {
                    "pool_size": pool_stats.get("pool_size", 0),
                    "pool_available": pool_stats.get("pool_available", 0),
                    "pool_utilization_percent": pool_stats.get("pool_utilization_percent", 0),
                    "connection_time_ms": db_health.get("connection_time_ms", 0),
                }
            )

        if not is_healthy:
            checks["database"]["error"] = db_health.get("error", "Database unhealthy")

        overall_ok = overall_ok and is_healthy

    except Exception as e:
        checks["database"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = False

    # 2) Sync engine
    controller = getattr(request.app.state, "sync_controller", None)
    if controller is None:
        checks["sync_engine"] = {"ok": False, "error": "Sync engine not initialized"}
        overall_ok = False
    else:
        active = await controller.active_job()
        checks["sync_engine"] = {
            "ok": True,
            "active_sync_id": active.id if active else None,
            "stalled": active.stalled if active else False,
        }

    # 3) Configuration
    config_issues = []
    if not settings.DATABASE_URL:
        config_issues.append("DATABASE_URL not set")
    if not settings.ADMIN_API_KEY:
        config_issues.append("ADMIN_API_KEY not set")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and not config_issues

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}


@router.get("/health/database")
async def database_health():
    """Detailed database pool health information."""
    return await db_health_check()
