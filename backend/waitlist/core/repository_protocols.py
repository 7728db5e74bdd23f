"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from shell (dependency arrows point inward only)
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - upsert_token is a single atomic statement per email; callers never
      read-then-write to refresh a token
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from waitlist.core.domain_types import (
    IssuedToken, NormalizedEmail, SubscriberRecord, VerificationToken,
)
from waitlist.core.format_email import MailContent


class SubscriptionStore(Protocol):
    """Contract for subscriber persistence, implemented by shell."""
    async def get_by_email(self, email: NormalizedEmail) -> SubscriberRecord | None: ...
    async def get_by_token(self, token: VerificationToken) -> SubscriberRecord | None: ...
    async def token_exists(self, token: VerificationToken) -> bool: ...
    async def upsert_token(
        self,
        email: NormalizedEmail,
        issued: IssuedToken,
        reset_verification: bool = False,
    ) -> tuple[SubscriberRecord, bool]:
        """Insert or refresh the token for email. Returns (record, is_new)."""
        ...
    async def mark_verified(
        self, record_id: UUID, token: VerificationToken, now: datetime,
    ) -> bool:
        """Flip verified for the row still owning token. True on first transition."""
        ...
    async def list_all(self) -> list[SubscriberRecord]: ...
    async def count_summary(self) -> dict: ...


class Mailer(Protocol):
    """Contract for mail transport, implemented by shell."""
    is_live: bool

    async def send(self, recipient: str, content: MailContent) -> None:
        """Deliver one message. Raises MailDeliveryError on failure."""
        ...
