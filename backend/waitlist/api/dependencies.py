"""API Dependencies - FastAPI providers for services, limiters, dispatcher and client identity.

Invariants:
    - One RateLimiter per gated endpoint per process (subscribe, notify), same policy
    - One NotificationDispatcher per process, built from settings on first use or at startup
    - SubscriptionService is per request (it holds the request's DB session)
    - Every provider is overridable through app.dependency_overrides

Design Decisions:
    - Module-level singletons, same lifecycle as infrastructure.database.db_manager:
      single-process uvicorn, counters lost on restart
"""

from datetime import datetime, timedelta
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist.config import Settings, get_settings
from waitlist.core.domain_types import ClientId
from waitlist.core.rate_limiter import RateLimiter
from waitlist.infrastructure.database import get_db
from waitlist.infrastructure.mailers import build_mailer
from waitlist.infrastructure.subscription_repository import SqlSubscriptionStore
from waitlist.services.notification_dispatcher import NotificationDispatcher
from waitlist.services.subscription_service import SubscriptionService, utc_now

_subscribe_limiter: RateLimiter | None = None
_notify_limiter: RateLimiter | None = None
_dispatcher: NotificationDispatcher | None = None


def _build_limiter(settings: Settings) -> RateLimiter:
    return RateLimiter(
        limit=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_minutes * 60,
    )


def init_services(settings: Settings) -> NotificationDispatcher:
    """Build process-wide collaborators. Called once from the app lifespan."""
    global _subscribe_limiter, _notify_limiter, _dispatcher
    _subscribe_limiter = _build_limiter(settings)
    _notify_limiter = _build_limiter(settings)
    _dispatcher = NotificationDispatcher(
        build_mailer(settings),
        owner_email=settings.owner_email,
        site_name=settings.site_name,
        send_timeout_seconds=settings.mail_send_timeout_seconds,
    )
    return _dispatcher


def get_subscribe_limiter() -> RateLimiter:
    global _subscribe_limiter
    if _subscribe_limiter is None:
        _subscribe_limiter = _build_limiter(get_settings())
    return _subscribe_limiter


def get_notify_limiter() -> RateLimiter:
    global _notify_limiter
    if _notify_limiter is None:
        _notify_limiter = _build_limiter(get_settings())
    return _notify_limiter


def get_dispatcher() -> NotificationDispatcher:
    if _dispatcher is None:
        return init_services(get_settings())
    return _dispatcher


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_client_id(
    request: Request, settings: Settings = Depends(get_settings),
) -> ClientId:
    """Peer address, or the first X-Forwarded-For hop behind a trusted proxy."""
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return ClientId(first_hop)
    return ClientId(request.client.host if request.client else "unknown")


def get_subscription_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    rate_limiter: RateLimiter = Depends(get_subscribe_limiter),
    notify_rate_limiter: RateLimiter = Depends(get_notify_limiter),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SubscriptionService:
    return SubscriptionService(
        SqlSubscriptionStore(db),
        rate_limiter,
        dispatcher,
        notify_rate_limiter=notify_rate_limiter,
        clock=clock,
        token_ttl=timedelta(hours=settings.token_ttl_hours),
        admin_token=settings.admin_token,
        admin_include_records=settings.admin_include_records,
        reset_verification_on_resubscribe=settings.reset_verification_on_resubscribe,
    )
