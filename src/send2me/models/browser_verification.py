# src/send2me/models/browser_verification.py
"""Per-IP record of bot-verification outcomes."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from send2me.db.session import Base
from send2me.db.time import utcnow

VERIFICATION_STATUS_PASSED = "passed"
VERIFICATION_STATUS_FAILED = "failed"


class BrowserVerification(Base):
    """Latest verification outcome for one hashed client IP."""

    __tablename__ = "browser_verification"

    ip_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    challenge_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    verification_status: Mapped[str] = mapped_column(String(16), nullable=False)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_agent_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    first_verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    verification_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
