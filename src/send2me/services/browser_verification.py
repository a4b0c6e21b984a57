"""Per-IP history of browser verification outcomes."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from send2me.db.time import utcnow
from send2me.db.transaction import run_transaction
from send2me.models import BrowserVerification
from send2me.models.browser_verification import (
    VERIFICATION_STATUS_FAILED,
    VERIFICATION_STATUS_PASSED,
)
from send2me.services.metadata import hash_value
from send2me.utils.redact import redact

logger = logging.getLogger(__name__)

_ALLOWED_STRING_FIELDS = (
    "platform",
    "platformVersion",
    "architecture",
    "model",
    "uaFullVersion",
    "bitness",
)


def _sanitize_brand(entry: Any) -> dict[str, str] | None:
    if not isinstance(entry, Mapping):
        return None
    brand = entry.get("brand")
    version = entry.get("version")
    cleaned: dict[str, str] = {}
    if isinstance(brand, str) and brand:
        cleaned["brand"] = brand
    if isinstance(version, str) and version:
        cleaned["version"] = version
    return cleaned or None


def sanitize_user_agent_data(data: Any) -> dict[str, Any] | None:
    """Keep only the known, well-typed fields of ``navigator.userAgentData``."""
    if not isinstance(data, Mapping):
        return None

    sanitized: dict[str, Any] = {}

    brands = data.get("brands")
    if isinstance(brands, list):
        cleaned = [brand for brand in map(_sanitize_brand, brands) if brand]
        if cleaned:
            sanitized["brands"] = cleaned

    mobile = data.get("mobile")
    if isinstance(mobile, bool):
        sanitized["mobile"] = mobile

    for name in _ALLOWED_STRING_FIELDS:
        value = data.get(name)
        if isinstance(value, str) and value.strip():
            sanitized[name] = value.strip()

    return sanitized or None


def get_verification_for_ip(db: Session, ip: str | None) -> BrowserVerification | None:
    """Return the stored verification record for a client IP, if any."""
    ip_hash = hash_value(ip)
    if ip_hash is None:
        return None
    return db.get(BrowserVerification, ip_hash)


def has_passed_verification(record: BrowserVerification | None) -> bool:
    return record is not None and record.verification_status == VERIFICATION_STATUS_PASSED


def upsert_verification_record(
    session_factory: sessionmaker[Session],
    *,
    ip: str | None,
    status: str,
    challenge_id: str | None = None,
    user_agent: str | None = None,
    user_agent_data: Any = None,
) -> BrowserVerification:
    """Record a verification attempt for ``ip``.

    The first attempt creates the record; later ones bump
    ``verification_count`` and overwrite the latest outcome while keeping
    ``first_verified_at``. Runs in its own transaction: a concurrent first
    insert for the same IP is retried as an update, and the count is bumped
    in SQL so simultaneous attempts are all counted.

    Returns:
        A detached copy of the stored record

    Raises:
        ValueError: If ``ip`` is missing or ``status`` is unknown
        TransactionConflictError: If the write kept conflicting
    """
    if not ip:
        raise ValueError("Cannot persist verification without an IP address.")
    if status not in (VERIFICATION_STATUS_PASSED, VERIFICATION_STATUS_FAILED):
        raise ValueError(f"Unknown verification status: {status}")

    ip_hash = hash_value(ip)
    sanitized = sanitize_user_agent_data(user_agent_data)

    def _apply(session: Session) -> BrowserVerification:
        now = utcnow()
        record = session.get(BrowserVerification, ip_hash)
        if record is None:
            record = BrowserVerification(
                ip_hash=ip_hash,
                first_verified_at=now,
                verification_count=1,
            )
            session.add(record)
        else:
            record.verification_count = BrowserVerification.verification_count + 1

        record.challenge_id = challenge_id
        record.verification_status = status
        record.user_agent = user_agent
        record.user_agent_data = sanitized
        record.last_verified_at = now
        record.updated_at = now

        session.flush()
        session.refresh(record)
        session.expunge(record)
        return record

    record = run_transaction(session_factory, _apply)
    logger.info(
        "Recorded browser verification status=%s ip=%s count=%s",
        status,
        redact(ip),
        record.verification_count,
    )
    return record
