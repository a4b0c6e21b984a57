"""Transactional read-modify-write primitive.

``run_transaction`` gives a callback read-then-write atomicity over the rows
it touches: each attempt runs in a fresh session inside ``session.begin()``,
and write conflicts (concurrent inserts of the same key, lock or
serialization failures) roll back and retry the whole callback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from send2me.core.errors import TransactionConflictError
from send2me.core.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CONFLICT_MARKERS = (
    "database is locked",
    "could not serialize",
    "deadlock detected",
    "lock wait timeout",
)


def _is_conflict(exc: Exception) -> bool:
    """Return True if the database error signals a retryable write conflict."""
    if isinstance(exc, IntegrityError):
        return True
    if isinstance(exc, OperationalError):
        text = str(exc.orig).lower()
        return any(marker in text for marker in _CONFLICT_MARKERS)
    return False


def run_transaction(
    session_factory: sessionmaker[Session],
    fn: Callable[[Session], T],
    *,
    max_attempts: int | None = None,
) -> T:
    """Run ``fn`` inside a single transaction, retrying on conflicts.

    Args:
        session_factory: Factory producing sessions bound to the store
        fn: Callback performing the reads and writes; its return value is
            returned once the transaction commits
        max_attempts: Attempts before giving up (defaults to settings)

    Returns:
        The callback's return value from the committed attempt

    Raises:
        TransactionConflictError: If every attempt hit a write conflict
    """
    attempts = max_attempts or settings.transaction_max_attempts
    for attempt in range(1, attempts + 1):
        session = session_factory()
        try:
            with session.begin():
                result = fn(session)
            return result
        except (IntegrityError, OperationalError) as exc:
            if not _is_conflict(exc):
                raise
            if attempt >= attempts:
                logger.error("Transaction conflict persisted after %d attempts: %s", attempt, exc)
                raise TransactionConflictError() from exc
            logger.debug("Transaction conflict on attempt %d, retrying: %s", attempt, exc)
        finally:
            session.close()

    raise TransactionConflictError()  # pragma: no cover - loop always returns or raises
