# src/send2me/models/message.py
"""Models describing messages left on a user's public link."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from send2me.db.session import Base
from send2me.db.time import utcnow


def _new_message_id() -> str:
    return uuid4().hex


class Message(Base):
    """Short text message delivered to a recipient's inbox.

    Messages are immutable once stored. When ``anon`` is set, every
    sender-identity column is NULL even if the sender was signed in.
    """

    __tablename__ = "message"
    __table_args__ = (
        CheckConstraint(
            "NOT anon OR (from_uid IS NULL AND from_username IS NULL AND from_email IS NULL "
            "AND from_given_name IS NULL AND from_family_name IS NULL)",
            name="ck_message_anon_sender_null",
        ),
        Index("ix_message_to_uid_created_at", "to_uid", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_message_id)

    to_uid: Mapped[str] = mapped_column(
        String(128), ForeignKey("account.uid", ondelete="CASCADE"), nullable=False
    )
    # Denormalized for display in the inbox.
    to_username: Mapped[str] = mapped_column(String(32), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    anon: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    from_uid: Mapped[str | None] = mapped_column(String(128), nullable=True)
    from_username: Mapped[str | None] = mapped_column(String(32), nullable=True)
    from_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    from_given_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    from_family_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    ip_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ua_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    country: Mapped[str | None] = mapped_column(String(8), nullable=True)
    device: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def full_name(self) -> str | None:
        """Return the sender's given and family names joined, if any."""
        parts = [part for part in (self.from_given_name, self.from_family_name) if part]
        return " ".join(parts) if parts else None
