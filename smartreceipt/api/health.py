"""
smartreceipt/api/health.py

Purpose: Liveness, readiness and health checks

- /live never touches dependencies
- /ready and /health ping MongoDB
- /health also lists the registered chat channels
"""

import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from smartreceipt.channels.base import channel_router
from smartreceipt.core.config import settings
from smartreceipt.db.mongo import check_database_health

router = APIRouter()


@router.get("/")
async def root():
    return {
        "name": "SmartReceipt API",
        "version": settings.APP_VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT,
    }


@router.get("/health")
async def health_check():
    """
    Database connectivity plus the chat channels this process can reach.
    A process with no channel can still confirm payments but cannot chat.
    """
    db_healthy = await check_database_health()
    channels = channel_router.platforms

    if not db_healthy:
        status = "unhealthy"
    elif not channels:
        status = "degraded"
    else:
        status = "healthy"

    body = {
        "status": status,
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "checks": {
            "database": "healthy" if db_healthy else "unhealthy",
            "channels": channels,
        },
    }
    return JSONResponse(content=body, status_code=503 if status == "unhealthy" else 200)


@router.get("/ready")
async def readiness_check():
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(status_code=503, content={"status": "not_ready", "reason": "database_unavailable"})


@router.get("/live")
async def liveness_check():
    return {"status": "alive"}
