# src/send2me/models/rate_limit.py
"""Model for fixed-window rate-limit counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from send2me.db.session import Base
from send2me.db.time import utcnow


class RateLimitCounter(Base):
    """Attempts counted for one key in its current window.

    Keys are ``target:{uid}:{ip_hash}`` or ``global:{ip_hash}``. Expired
    windows are reset in place, never deleted.
    """

    __tablename__ = "rate_limit_counter"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    window_started_at: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch ms
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
