"""Health & Readiness Checks - liveness, plus database, mail and limiter state for readiness.

Invariants:
    - GET /api/health answers 200 while the process is up and reports the mail mode
    - GET /api/health/ready answers 503 when the database is unreachable
    - Readiness never depends on SMTP reachability: mail is best effort
    - Readiness reports in-flight mail and the clients each rate limiter tracks
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from waitlist.api.dependencies import (
    get_dispatcher, get_notify_limiter, get_subscribe_limiter,
)
from waitlist.config import Settings, get_settings
from waitlist.core.rate_limiter import RateLimiter
import waitlist.infrastructure.database as database
from waitlist.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(settings: Settings = Depends(get_settings)):
    return {
        "ok": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "smtpConfigured": settings.smtp_configured,
    }


@router.get("/ready")
async def readiness_check(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    subscribe_limiter: RateLimiter = Depends(get_subscribe_limiter),
    notify_limiter: RateLimiter = Depends(get_notify_limiter),
):
    # read through the module: db_manager is rebound by init_db at startup
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        logger.warning("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "mail": "live" if dispatcher.is_live else "test",
            "mailInFlight": dispatcher.pending,
            "rateLimiterClients": {
                "subscribe": len(subscribe_limiter),
                "notify": len(notify_limiter),
            },
        },
    }
