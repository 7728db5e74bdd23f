"""Email Validation - structural check and normalization for subscriber addresses.

Invariants:
    - Valid means local@domain.tld with no whitespace and at most 254 characters
    - normalize_email is strip + lowercase; normalized form is the unique store key
    - Pure functions, never raise
"""

import re

from waitlist.core.domain_types import MAX_EMAIL_LENGTH, NormalizedEmail

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> NormalizedEmail:
    return NormalizedEmail(email.strip().lower())


def is_valid_email(email: object) -> bool:
    """Basic structural check. Non-strings and empty values are invalid."""
    if not isinstance(email, str):
        return False
    candidate = email.strip()
    if not candidate or len(candidate) > MAX_EMAIL_LENGTH:
        return False
    return EMAIL_PATTERN.match(candidate.lower()) is not None
