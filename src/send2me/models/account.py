# src/send2me/models/account.py
"""Models for accounts and their reserved public usernames."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from send2me.db.session import Base
from send2me.db.time import utcnow


class Account(Base):
    """Profile of a signed-in user, keyed by the identity provider subject."""

    __tablename__ = "account"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Normalized username; NULL until the user claims a link.
    username: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    link_slug: Mapped[str | None] = mapped_column(String(32), nullable=True)

    agreed_to_tos: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    agreed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class UsernameReservation(Base):
    """Uniqueness lock mapping a normalized username to its owning account."""

    __tablename__ = "username_reservation"

    username: Mapped[str] = mapped_column(String(32), primary_key=True)
    uid: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("account.uid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
