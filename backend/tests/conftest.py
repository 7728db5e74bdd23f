"""Root conftest - shared test configuration."""

import os

# Tests always run in mail test mode against SQLite
for _var in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "FRONTEND_URL"):
    os.environ.pop(_var, None)
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("ADMIN_TOKEN", "test-admin-secret")
os.environ.setdefault("LOG_FORMAT", "text")
