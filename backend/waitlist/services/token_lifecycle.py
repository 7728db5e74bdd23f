"""Token Lifecycle - issues collision-free tokens and validates them against the store.

Invariants:
    - issue() never returns a token already owned by a record
    - validate() maps lookups to OK / NOT_FOUND / EXPIRED via core.token_rules
    - A superseded token is simply absent from the store, so it validates as NOT_FOUND
"""

import logging
from datetime import datetime, timedelta

from waitlist.core.domain_types import (
    IssuedToken, TOKEN_TTL, TokenCheck, VerificationToken,
)
from waitlist.core.errors import TokenCollisionError
from waitlist.core.repository_protocols import SubscriptionStore
from waitlist.core.token_rules import classify_token, issue_token

logger = logging.getLogger(__name__)

MAX_ISSUE_ATTEMPTS = 3


class TokenLifecycle:
    """Token issuance and validation over a SubscriptionStore."""

    def __init__(self, store: SubscriptionStore, ttl: timedelta = TOKEN_TTL):
        self.store = store
        self.ttl = ttl

    async def issue(self, now: datetime) -> IssuedToken:
        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            issued = issue_token(now, self.ttl)
            if not await self.store.token_exists(issued.token):
                return issued
            logger.warning(f"Token collision on attempt {attempt}, regenerating")
        raise TokenCollisionError(MAX_ISSUE_ATTEMPTS)

    async def validate(self, token: VerificationToken, now: datetime) -> TokenCheck:
        record = await self.store.get_by_token(token)
        return classify_token(record, now)
