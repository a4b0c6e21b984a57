"""initial schema

Revision ID: 5c1e2a9d4b7f
Revises:
Create Date: 2026-10-19 13:58:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d4b7f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, reservations, messages, counters and verification records."""
    op.create_table(
        "account",
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("username", sa.String(length=32), nullable=True),
        sa.Column("link_slug", sa.String(length=32), nullable=True),
        sa.Column("agreed_to_tos", sa.Boolean(), nullable=False),
        sa.Column("agreed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("uid"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "username_reservation",
        sa.Column("username", sa.String(length=32), nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["uid"], ["account.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("username"),
    )
    op.create_index(
        op.f("ix_username_reservation_uid"), "username_reservation", ["uid"], unique=False
    )
    op.create_table(
        "message",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("to_uid", sa.String(length=128), nullable=False),
        sa.Column("to_username", sa.String(length=32), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("anon", sa.Boolean(), nullable=False),
        sa.Column("from_uid", sa.String(length=128), nullable=True),
        sa.Column("from_username", sa.String(length=32), nullable=True),
        sa.Column("from_email", sa.Text(), nullable=True),
        sa.Column("from_given_name", sa.Text(), nullable=True),
        sa.Column("from_family_name", sa.Text(), nullable=True),
        sa.Column("ip_hash", sa.String(length=64), nullable=True),
        sa.Column("ua_hash", sa.String(length=64), nullable=True),
        sa.Column("country", sa.String(length=8), nullable=True),
        sa.Column("device", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "NOT anon OR (from_uid IS NULL AND from_username IS NULL AND from_email IS NULL "
            "AND from_given_name IS NULL AND from_family_name IS NULL)",
            name="ck_message_anon_sender_null",
        ),
        sa.ForeignKeyConstraint(["to_uid"], ["account.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_message_to_uid_created_at", "message", ["to_uid", "created_at"], unique=False
    )
    op.create_table(
        "rate_limit_counter",
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("window_started_at", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )
    op.create_table(
        "browser_verification",
        sa.Column("ip_hash", sa.String(length=64), nullable=False),
        sa.Column("challenge_id", sa.Text(), nullable=True),
        sa.Column("verification_status", sa.String(length=16), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("user_agent_data", sa.JSON(), nullable=True),
        sa.Column("first_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("ip_hash"),
    )


def downgrade() -> None:
    """Drop every Send2Me table."""
    op.drop_table("browser_verification")
    op.drop_table("rate_limit_counter")
    op.drop_index("ix_message_to_uid_created_at", table_name="message")
    op.drop_table("message")
    op.drop_index(op.f("ix_username_reservation_uid"), table_name="username_reservation")
    op.drop_table("username_reservation")
    op.drop_table("account")
