"""Token Rules - pure issuance and expiry rules for verification tokens.

Invariants:
    - Tokens are secrets.token_urlsafe(32): URL-safe, 256 bits of entropy
    - expiry == issued_at + ttl, always
    - A token is expired only when now is strictly after its expiry
    - classify_token never raises; absence of a record is NOT_FOUND
"""

import secrets
from datetime import datetime, timedelta
from urllib.parse import urlencode

from waitlist.core.domain_types import (
    IssuedToken, SubscriberRecord, TokenCheck, TokenStatus,
    TOKEN_TTL, VerificationToken,
)

TOKEN_BYTES = 32


def generate_token(nbytes: int = TOKEN_BYTES) -> VerificationToken:
    return VerificationToken(secrets.token_urlsafe(nbytes))


def issue_token(now: datetime, ttl: timedelta = TOKEN_TTL) -> IssuedToken:
    """Fresh token valid from now until now + ttl."""
    return IssuedToken(token=generate_token(), issued_at=now, expiry=now + ttl)


def is_expired(record: SubscriberRecord, now: datetime) -> bool:
    return now > record.token_expiry


def classify_token(record: SubscriberRecord | None, now: datetime) -> TokenCheck:
    """Map a looked-up record to OK / NOT_FOUND / EXPIRED."""
    if record is None:
        return TokenCheck(TokenStatus.NOT_FOUND)
    if is_expired(record, now):
        return TokenCheck(TokenStatus.EXPIRED, record)
    return TokenCheck(TokenStatus.OK, record)


def build_verify_url(base_url: str, token: VerificationToken) -> str:
    """Absolute verification link. base_url is the site origin, with or without trailing slash."""
    return f"{base_url.rstrip('/')}/api/verify?{urlencode({'token': token})}"
