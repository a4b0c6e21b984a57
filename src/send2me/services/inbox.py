"""Recipient-side message queries."""

from __future__ import annotations

from typing import Literal

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from send2me.models import Message

MessageFilter = Literal["all", "anon", "identified"]

DEFAULT_LIMIT = 50


def list_messages(
    db: Session,
    uid: str,
    *,
    message_filter: MessageFilter = "all",
    limit: int = DEFAULT_LIMIT,
) -> list[Message]:
    """Return the newest messages addressed to ``uid``."""
    query = db.query(Message).filter(Message.to_uid == uid)
    if message_filter == "anon":
        query = query.filter(Message.anon.is_(True))
    elif message_filter == "identified":
        query = query.filter(Message.anon.is_(False))
    return query.order_by(desc(Message.created_at)).limit(limit).all()


def get_message_stats(db: Session, uid: str) -> dict[str, int]:
    """Return total, anonymous and identified message counts for ``uid``."""
    total = (
        db.query(func.count()).select_from(Message).filter(Message.to_uid == uid).scalar() or 0
    )
    anon = (
        db.query(func.count())
        .select_from(Message)
        .filter(Message.to_uid == uid, Message.anon.is_(True))
        .scalar()
        or 0
    )
    return {"total": int(total), "anon": int(anon), "identified": int(total) - int(anon)}
