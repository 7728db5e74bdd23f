"""Tests for compute_subscriber_stats - pure counts, no IO."""

from datetime import datetime, timezone
from uuid import uuid4

from waitlist.core.domain_types import SubscriberRecord
from waitlist.core.subscriber_stats import compute_subscriber_stats

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _record(email: str, verified: bool) -> SubscriberRecord:
    return SubscriberRecord(
        id=uuid4(), email=email, token=f"t-{email}", token_expiry=NOW,
        verified=verified, first_subscribed_at=NOW, last_attempt_at=NOW,
        verified_at=NOW if verified else None,
    )


def test_empty_list_returns_zero_counts():
    assert compute_subscriber_stats([]) == {
        "total": 0, "verified": 0, "unverified": 0,
    }


def test_counts_split_by_verified_flag():
    records = [
        _record("a@example.com", True),
        _record("b@example.com", False),
        _record("c@example.com", False),
    ]
    assert compute_subscriber_stats(records) == {
        "total": 3, "verified": 1, "unverified": 2,
    }


def test_record_serialization():
    pending = _record("b@example.com", False)
    data = pending.to_dict()
    assert data["email"] == "b@example.com"
    assert data["verifiedAt"] is None
    assert data["tokenExpiry"] == NOW.isoformat()
