"""Structured Logging - JSON lines with subscriber addresses masked.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Domain extras (email, client_id, error_code, path, delivery) are surfaced
      when a call site passes them via extra=
    - With masking on, an email extra is logged as "j***@example.com"; the
      domain stays readable for deliverability triage
    - setup_logging replaces its own handler on repeat calls, never stacks one
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = ("email", "client_id", "error_code", "path", "delivery")


def mask_email(email: str) -> str:
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, mask_emails: bool = True):
        super().__init__()
        self.mask_emails = mask_emails

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            value = record.__dict__.get(key)
            if value is None:
                continue
            if key == "email" and self.mask_emails:
                value = mask_email(str(value))
            entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


_handler: logging.Handler | None = None


def setup_logging(
    level: str = "INFO", fmt: str = "json", mask_emails: bool = True,
) -> None:
    """Install the root handler. Called from the app lifespan."""
    global _handler
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter(mask_emails=mask_emails))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    if _handler is not None:
        logging.root.removeHandler(_handler)
    _handler = handler
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # aiosmtplib logs full SMTP dialogues at DEBUG
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)
