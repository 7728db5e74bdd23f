"""Subscription Service - subscribe, verify, admin summary and owner notify use cases.

Invariants:
    - subscribe: rate limit, then email shape, then store; rejected requests
      never touch the store or the mailer
    - The stored record is the source of truth: mail failure never rolls it back
    - verify is idempotent: a second verify of a live token succeeds without side effects
    - A token replaced by a later subscribe verifies as NOT_FOUND
    - admin_summary is unreachable without the configured secret
    - Clock is injected; every timestamp in one operation comes from a single reading

Design Decisions:
    - Verification URL returned to the caller only in test mode (no live transport)
    - Owner alerts fire only on state transitions (sign-up, first verification)
"""

import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from waitlist.core.domain_types import (
    ClientId, DeliveryOutcome, MAX_NOTE_LENGTH, TOKEN_TTL, TokenStatus,
    VerificationToken,
)
from waitlist.core.errors import (
    ErrorContext, InvalidEmailError, MissingTokenError, RateLimitedError,
    TokenExpiredError, TokenNotFoundError, UnauthorizedError,
)
from waitlist.core.rate_limiter import RateLimiter
from waitlist.core.repository_protocols import SubscriptionStore
from waitlist.core.subscriber_stats import compute_subscriber_stats
from waitlist.core.token_rules import build_verify_url
from waitlist.core.validate_email import is_valid_email, normalize_email
from waitlist.services.notification_dispatcher import NotificationDispatcher
from waitlist.services.token_lifecycle import TokenLifecycle

logger = logging.getLogger(__name__)

SUBSCRIBE_MESSAGES = {
    DeliveryOutcome.SENT: "Verification email sent! Check your inbox.",
    DeliveryOutcome.PENDING: "Verification email is on its way. Check your inbox shortly.",
    DeliveryOutcome.FAILED: (
        "You're on the list, but we couldn't send the verification email "
        "right now. Please try again later."
    ),
    DeliveryOutcome.LOGGED: (
        "SMTP not configured. Use the verification URL below to simulate "
        "email verification."
    ),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SubscribeResult:
    email: str
    is_new: bool
    delivery: DeliveryOutcome
    message: str
    verification_url: str | None = None


@dataclass(frozen=True)
class VerifyResult:
    email: str
    verified_at: datetime | None
    already_verified: bool


@dataclass(frozen=True)
class AdminSummary:
    total: int
    verified: int
    unverified: int
    subscriptions: list[dict] = field(default_factory=list)


class SubscriptionService:
    """Orchestrates RateLimiter, TokenLifecycle, store and dispatcher."""

    def __init__(
        self,
        store: SubscriptionStore,
        rate_limiter: RateLimiter,
        dispatcher: NotificationDispatcher,
        *,
        notify_rate_limiter: RateLimiter | None = None,
        clock: Callable[[], datetime] = utc_now,
        token_ttl: timedelta = TOKEN_TTL,
        admin_token: str | None = None,
        admin_include_records: bool = True,
        reset_verification_on_resubscribe: bool = False,
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.notify_rate_limiter = notify_rate_limiter or rate_limiter
        self.dispatcher = dispatcher
        self.clock = clock
        self.tokens = TokenLifecycle(store, token_ttl)
        self.admin_token = admin_token
        self.admin_include_records = admin_include_records
        self.reset_verification_on_resubscribe = reset_verification_on_resubscribe

    # ─── subscribe ──────────────────────────────────────────────

    async def subscribe(
        self, email: object, client_id: ClientId, verify_base_url: str,
    ) -> SubscribeResult:
        self._gate(self.rate_limiter, client_id)
        if not is_valid_email(email):
            logger.warning(
                "Invalid email attempt", extra={"client_id": client_id},
            )
            raise InvalidEmailError(ErrorContext(client_id=client_id))

        normalized = normalize_email(email)
        now = self.clock()
        issued = await self.tokens.issue(now)
        record, is_new = await self.store.upsert_token(
            normalized, issued,
            reset_verification=self.reset_verification_on_resubscribe,
        )
        logger.info(
            "New subscription" if is_new else "Email re-subscribed",
            extra={"email": normalized, "client_id": client_id},
        )

        verify_url = build_verify_url(verify_base_url, record.token)
        delivery = await self.dispatcher.send_verification(
            normalized, verify_url, self._ttl_hours,
        )
        self.dispatcher.alert_new_interest(normalized, is_new)

        return SubscribeResult(
            email=normalized,
            is_new=is_new,
            delivery=delivery,
            message=SUBSCRIBE_MESSAGES[delivery],
            verification_url=None if self.dispatcher.is_live else verify_url,
        )

    # ─── verify ─────────────────────────────────────────────────

    async def verify(self, token: str | None) -> VerifyResult:
        if not token or not token.strip():
            raise MissingTokenError()
        token = VerificationToken(token.strip())
        now = self.clock()

        check = await self.tokens.validate(token, now)
        if check.status is TokenStatus.NOT_FOUND:
            logger.warning("Invalid verification token")
            raise TokenNotFoundError()
        record = check.record
        if check.status is TokenStatus.EXPIRED:
            logger.warning(
                "Expired verification token", extra={"email": record.email},
            )
            raise TokenExpiredError(ErrorContext(email=record.email))

        if record.verified:
            return VerifyResult(record.email, record.verified_at, already_verified=True)

        if await self.store.mark_verified(record.id, token, now):
            logger.info("Email verified", extra={"email": record.email})
            self.dispatcher.alert_confirmed(record.email)
            return VerifyResult(record.email, now, already_verified=False)

        # Lost a race: either a concurrent verify won, or a subscribe replaced the token
        current = await self.store.get_by_token(token)
        if current is None:
            raise TokenNotFoundError(ErrorContext(email=record.email))
        return VerifyResult(current.email, current.verified_at, already_verified=True)

    # ─── admin ──────────────────────────────────────────────────

    async def admin_summary(self, admin_token: str | None) -> AdminSummary:
        if not self._admin_token_matches(admin_token):
            logger.warning("Unauthorized admin access attempt")
            raise UnauthorizedError()

        if self.admin_include_records:
            records = await self.store.list_all()
            stats = compute_subscriber_stats(records)
            subscriptions = [r.to_dict() for r in records]
        else:
            stats = await self.store.count_summary()
            subscriptions = []
        logger.info("Admin stats accessed")
        return AdminSummary(subscriptions=subscriptions, **stats)

    # ─── notify ─────────────────────────────────────────────────

    def notify_owner(
        self, email: object, message: str | None, client_id: ClientId,
    ) -> str:
        """Queue an owner alert. Delivery problems never reach the caller."""
        self._gate(self.notify_rate_limiter, client_id)
        if not isinstance(email, str) or not email.strip():
            raise InvalidEmailError(ErrorContext(client_id=client_id))
        note = message[:MAX_NOTE_LENGTH] if message else message
        self.dispatcher.alert_message(email.strip(), note)
        if self.dispatcher.is_live:
            return "Owner notified"
        return "Owner notification logged (no SMTP)"

    # ─── helpers ────────────────────────────────────────────────

    @property
    def _ttl_hours(self) -> int:
        return int(self.tokens.ttl.total_seconds() // 3600)

    def _gate(self, limiter: RateLimiter, client_id: ClientId) -> None:
        if limiter.admit(client_id):
            return
        logger.warning("Rate limit exceeded", extra={"client_id": client_id})
        raise RateLimitedError(
            limiter.retry_after(client_id), ErrorContext(client_id=client_id),
        )

    def _admin_token_matches(self, candidate: str | None) -> bool:
        if not self.admin_token or not candidate:
            return False
        return hmac.compare_digest(
            candidate.encode("utf-8"), self.admin_token.encode("utf-8"),
        )
