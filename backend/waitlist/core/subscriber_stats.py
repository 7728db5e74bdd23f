"""Subscriber Stats - pure aggregate counts for the admin summary.

Invariants:
    - total == verified + unverified
    - Never raises on an empty list
"""

from waitlist.core.domain_types import SubscriberRecord


def compute_subscriber_stats(records: list[SubscriberRecord]) -> dict:
    """Count verified/unverified subscribers. Pure, no IO."""
    verified = sum(1 for r in records if r.verified)
    return {
        "total": len(records),
        "verified": verified,
        "unverified": len(records) - verified,
    }
