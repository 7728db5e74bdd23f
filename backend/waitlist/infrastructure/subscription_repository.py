"""Subscription Repository - SQLAlchemy implementation of SubscriptionStore.

Invariants:
    - upsert_token is one INSERT ... ON CONFLICT (email) DO UPDATE statement,
      so two concurrent subscribes for one email can never leave two live tokens
    - The conflict branch only touches token, token_expiry, last_attempt_at
      (plus verified/verified_at when reset_verification is requested)
    - mark_verified is a conditional UPDATE guarded by id, token and verified=false
    - Reads use populate_existing so Core statements are never hidden by the identity map
    - Every write commits before returning; failures roll back in DatabaseSessionManager

Design Decisions:
    - Dialect-specific insert (postgresql / sqlite): both support ON CONFLICT DO UPDATE
    - is_new comes from a read before the upsert and is advisory (logging, alert wording)
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist.core.domain_types import (
    IssuedToken, NormalizedEmail, SubscriberRecord, VerificationToken,
)
from waitlist.core.errors import DatabaseError
from waitlist.models.subscription import Subscription

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SqlSubscriptionStore:
    """SubscriptionStore backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: NormalizedEmail) -> SubscriberRecord | None:
        return await self._fetch_one(Subscription.email == email)

    async def get_by_token(self, token: VerificationToken) -> SubscriberRecord | None:
        return await self._fetch_one(Subscription.token == token)

    async def token_exists(self, token: VerificationToken) -> bool:
        result = await self.db.execute(
            select(Subscription.id).where(Subscription.token == token),
        )
        return result.first() is not None

    async def upsert_token(
        self,
        email: NormalizedEmail,
        issued: IssuedToken,
        reset_verification: bool = False,
    ) -> tuple[SubscriberRecord, bool]:
        """Insert a new subscriber or refresh the token of an existing one."""
        existing = await self.get_by_email(email)

        insert = self._dialect_insert()
        stmt = insert(Subscription).values(
            id=uuid.uuid4(),
            email=email,
            token=issued.token,
            token_expiry=issued.expiry,
            verified=False,
            first_subscribed_at=issued.issued_at,
            last_attempt_at=issued.issued_at,
            verified_at=None,
        )
        refresh = {
            "token": stmt.excluded.token,
            "token_expiry": stmt.excluded.token_expiry,
            "last_attempt_at": stmt.excluded.last_attempt_at,
        }
        if reset_verification:
            refresh["verified"] = False
            refresh["verified_at"] = None
        stmt = stmt.on_conflict_do_update(
            index_elements=[Subscription.email], set_=refresh,
        )
        await self.db.execute(stmt)
        await self.db.commit()

        record = await self.get_by_email(email)
        if record is None:
            raise DatabaseError("Row missing after upsert", "upsert")
        return record, existing is None

    async def mark_verified(
        self, record_id: uuid.UUID, token: VerificationToken, now: datetime,
    ) -> bool:
        """Returns True only for the request that performed the transition."""
        result = await self.db.execute(
            update(Subscription)
            .where(
                Subscription.id == record_id,
                Subscription.token == token,
                Subscription.verified.is_(False),
            )
            .values(verified=True, verified_at=now)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        return result.rowcount == 1

    async def list_all(self) -> list[SubscriberRecord]:
        result = await self.db.execute(
            select(Subscription)
            .order_by(Subscription.first_subscribed_at, Subscription.email)
            .execution_options(populate_existing=True),
        )
        return [row.to_record() for row in result.scalars().all()]

    async def count_summary(self) -> dict:
        result = await self.db.execute(
            select(
                func.count(),
                func.coalesce(
                    func.sum(case((Subscription.verified.is_(True), 1), else_=0)), 0,
                ),
            ).select_from(Subscription),
        )
        total, verified = result.one()
        return {
            "total": int(total),
            "verified": int(verified),
            "unverified": int(total) - int(verified),
        }

    async def _fetch_one(self, clause) -> SubscriberRecord | None:
        result = await self.db.execute(
            select(Subscription)
            .where(clause)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        return row.to_record() if row else None

    def _dialect_insert(self):
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise DatabaseError(f"upsert not supported on {dialect}", "upsert")
        return insert
