"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - ClientId, VerificationToken, NormalizedEmail are NewTypes over str
    - All valid states encoded as Enums (no raw string matching)
    - SubscriberRecord is the only shape the core sees; ORM rows never leak inward
    - TOKEN_TTL is fixed at 24 hours, rate limit at 5 requests per 60 minutes

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ClientId = NewType("ClientId", str)                    # IP address or forwarded hop
VerificationToken = NewType("VerificationToken", str)
NormalizedEmail = NewType("NormalizedEmail", str)      # stripped + lowercase


# ─── Constants ───────────────────────────────────────────────────

TOKEN_TTL = timedelta(hours=24)
MAX_EMAIL_LENGTH = 254
MAX_NOTE_LENGTH = 2000
RATE_LIMIT_MAX_REQUESTS = 5
RATE_LIMIT_WINDOW_SECONDS = 60 * 60


# ─── Enums ───────────────────────────────────────────────────────

class TokenStatus(str, Enum):
    """Outcome of validating a verification token."""
    OK = "ok"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


class DeliveryOutcome(str, Enum):
    """What happened to a best-effort mail dispatch."""
    SENT = "sent"
    LOGGED = "logged"        # test mode, no transport configured
    PENDING = "pending"      # still running after the bounded wait
    FAILED = "failed"


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class SubscriberRecord:
    """Storage-agnostic view of one subscriber row."""
    id: UUID
    email: NormalizedEmail
    token: VerificationToken
    token_expiry: datetime
    verified: bool
    first_subscribed_at: datetime
    last_attempt_at: datetime
    verified_at: datetime | None = None

    def to_dict(self) -> dict:
        """JSON-ready representation (admin listing)."""
        return {
            "id": str(self.id),
            "email": self.email,
            "token": self.token,
            "tokenExpiry": self.token_expiry.isoformat(),
            "verified": self.verified,
            "firstSubscribedAt": self.first_subscribed_at.isoformat(),
            "lastAttemptAt": self.last_attempt_at.isoformat(),
            "verifiedAt": (
                self.verified_at.isoformat() if self.verified_at else None
            ),
        }


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued token and the instant it stops being valid."""
    token: VerificationToken
    issued_at: datetime
    expiry: datetime


@dataclass(frozen=True)
class TokenCheck:
    """Result of TokenLifecycle.validate. record is set unless NOT_FOUND."""
    status: TokenStatus
    record: SubscriberRecord | None = None
