"""Subscription ORM - one row per normalized email address.

Invariants:
    - email is unique (upsert conflict target)
    - token is unique and indexed (verification lookup)
    - token_expiry == last_attempt_at + TTL at issuance time
    - verified=True implies verified_at is set
    - Rows are never deleted by the application

Design Decisions:
    - Column defaults mirror the insert branch of the upsert so ORM-created
      rows (tests, scripts) satisfy the same invariants
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from waitlist.core.domain_types import (
    NormalizedEmail, SubscriberRecord, VerificationToken,
)
from waitlist.db.base import Base
from waitlist.db.column_types import UTCDateTime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(Base):
    """Interest-list subscriber."""
    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(254), nullable=False, unique=True,
    )
    token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True,
    )
    token_expiry: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False,
    )
    verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    first_subscribed_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=_utcnow,
    )
    last_attempt_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=_utcnow,
    )
    verified_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True,
    )

    def to_record(self) -> SubscriberRecord:
        return SubscriberRecord(
            id=self.id,
            email=NormalizedEmail(self.email),
            token=VerificationToken(self.token),
            token_expiry=self.token_expiry,
            verified=self.verified,
            first_subscribed_at=self.first_subscribed_at,
            last_attempt_at=self.last_attempt_at,
            verified_at=self.verified_at,
        )
