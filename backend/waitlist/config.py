"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - Live mail mode iff SMTP host, user and password are all set

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://waitlist:waitlist@db:5432/waitlist"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_create_tables: bool = False

    # Mail transport
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_secure: bool = False
    smtp_from: str = "noreply@example.com"
    notify_email: str | None = None
    mail_send_timeout_seconds: float = 10.0

    # Links and pages
    frontend_url: str | None = None
    site_name: str = "Interest List"

    # Admin surface
    admin_token: str | None = None
    admin_include_records: bool = True

    # Subscription policy
    token_ttl_hours: int = 24
    rate_limit_max_requests: int = 5
    rate_limit_window_minutes: int = 60
    reset_verification_on_resubscribe: bool = False

    # HTTP
    cors_origins: list[str] = ["http://localhost:3000"]
    trust_forwarded_for: bool = False
    max_body_bytes: int = 10 * 1024

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"
    log_mask_emails: bool = True

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    @property
    def owner_email(self) -> str:
        return self.notify_email or self.smtp_from


@lru_cache
def get_settings() -> Settings:
    return Settings()
