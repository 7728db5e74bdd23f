"""Interest List API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map WaitlistError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Request bodies over MAX_BODY_BYTES rejected with 413, declared or streamed
    - Database and mail dispatcher initialized on startup via lifespan;
      in-flight mail tasks drained on shutdown

Design Decisions:
    - Lifespan over @app.on_event: single place for startup and cleanup
    - Static landing page mounted AFTER API routes so /api/* takes precedence
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from waitlist.api.body_limit import BodySizeLimitMiddleware
from waitlist.api.dependencies import init_services
from waitlist.api.error_handlers import register_error_handlers
from waitlist.api.routes import admin, health, notify, subscriptions
from waitlist.config import get_settings
from waitlist.infrastructure.database import init_db
from waitlist.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format, settings.log_mask_emails)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_create_tables:
        await manager.create_all()
    dispatcher = init_services(settings)
    logger.info(
        "Interest List API started "
        f"(SMTP: {'configured' if dispatcher.is_live else 'not configured, test mode'})",
    )
    yield
    logger.info("Interest List API shutting down")
    await dispatcher.drain()
    await manager.dispose()


app = FastAPI(
    title="Interest List API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

register_error_handlers(app)

# Routes - explicit registration
app.include_router(health.router)
app.include_router(subscriptions.router)
app.include_router(notify.router)
app.include_router(admin.router)

if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")
