"""Error Hierarchy - typed, categorized exceptions for every interest-list failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (4xx) never carry internal detail; infrastructure errors (5xx) are critical
    - to_response() produces the REST envelope {"error": <message>, "code": <code>}

Design Decisions:
    - Single hierarchy rooted at WaitlistError: one FastAPI handler covers all of it
    - ErrorContext as dataclass: observability fields travel with the exception,
      not with the logger
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXPIRED = "expired"
    AUTH = "auth"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    email: str | None = None
    client_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_seconds: int | None = None


class WaitlistError(Exception):
    """Base exception for all interest-list errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the public REST error body."""
        return {"error": self.message, "code": self.code}

    def response_headers(self) -> dict[str, str]:
        """Extra HTTP headers for this error (Retry-After for throttling)."""
        if self.context.retry_after_seconds is None:
            return {}
        return {"Retry-After": str(self.context.retry_after_seconds)}


# ─── Client Errors (400-level) ──────────────────────────────────

class InvalidEmailError(WaitlistError):
    """Email missing, malformed, or longer than 254 characters."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Please enter a valid email address.",
            "INVALID_EMAIL", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class MissingTokenError(WaitlistError):
    """Verification request without a token."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Missing verification token.",
            "MISSING_TOKEN", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class RateLimitedError(WaitlistError):
    """Client exceeded the per-window request budget."""
    def __init__(self, retry_after_seconds: int | None = None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.retry_after_seconds = retry_after_seconds
        super().__init__(
            "Too many requests. Try again later.",
            "RATE_LIMITED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, ctx, 429,
        )


class TokenNotFoundError(WaitlistError):
    """Token was never issued, or a later subscribe superseded it."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "This verification link is invalid.",
            "TOKEN_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )


class TokenExpiredError(WaitlistError):
    """Token exists but its TTL has elapsed. The record is kept."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "This verification link has expired. Please subscribe again.",
            "TOKEN_EXPIRED", ErrorCategory.EXPIRED,
            ErrorSeverity.WARNING, context, 410,
        )


class UnauthorizedError(WaitlistError):
    """Admin secret missing or mismatched."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Unauthorized", "UNAUTHORIZED", ErrorCategory.AUTH,
            ErrorSeverity.WARNING, context, 401,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(WaitlistError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation

    def to_response(self) -> dict:
        return {
            "error": "An unexpected error occurred. Please try again.",
            "code": self.code,
        }


class MailDeliveryError(WaitlistError):
    """Mail transport rejected or failed to deliver a message."""
    def __init__(self, message: str, recipient: str, context: ErrorContext | None = None):
        super().__init__(
            f"Mail delivery to {recipient} failed: {message}",
            "MAIL_DELIVERY_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )
        self.recipient = recipient


class TokenCollisionError(WaitlistError):
    """Could not produce a token that is not already owned by a record."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Token generation collided {attempts} times",
            "TOKEN_COLLISION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.attempts = attempts
