"""Initial schema - subscriptions.

Revision ID: 001_subscriptions
Revises: None
Create Date: 2026-10-18

One row per normalized email; token unique and indexed for verification lookups.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_subscriptions"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(254), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("token_expiry", sa.DateTime(timezone=True), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("first_subscribed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_subscriptions"),
        sa.UniqueConstraint("email", name="uq_subscriptions_email"),
    )
    op.create_index(
        "ix_subscriptions_token", "subscriptions", ["token"], unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_subscriptions_token", table_name="subscriptions")
    op.drop_table("subscriptions")
