"""Username reservation and account lookups."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from send2me.core.errors import UsernameTakenError
from send2me.db.session import get_session_factory
from send2me.db.time import utcnow
from send2me.db.transaction import run_transaction
from send2me.models import Account, UsernameReservation
from send2me.services.moderation import normalize
from send2me.services.public_url import build_profile_url, resolve_public_base_url

logger = logging.getLogger(__name__)


def username_key(username: str) -> str:
    """Return the canonical reservation key for a requested username."""
    return "".join(normalize(username).split())


def get_account(db: Session, uid: str) -> Account | None:
    """Return an account by identity-provider subject."""
    return db.get(Account, uid)


def get_account_by_username(db: Session, username: str) -> Account | None:
    """Return the account that owns ``username`` (compared normalized)."""
    key = username_key(username)
    if not key:
        return None
    return db.query(Account).filter(Account.username == key).first()


def reserve_username(
    *,
    uid: str,
    username: str,
    email: str,
    base_url: str | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> str:
    """Claim ``username`` for ``uid`` and return the public profile URL.

    The reservation record and the account profile are written in one
    transaction: either both land or neither does. Re-reserving the same
    name for the same account is idempotent.

    Raises:
        UsernameTakenError: If another account already owns the name
        TransactionConflictError: If the store kept conflicting
    """
    key = username_key(username)

    def _claim(session: Session) -> None:
        reservation = session.get(UsernameReservation, key, with_for_update=True)
        if reservation is not None and reservation.uid != uid:
            raise UsernameTakenError()

        now = utcnow()
        account = session.get(Account, uid, with_for_update=True)
        if account is None:
            account = Account(uid=uid, created_at=now)
            session.add(account)
        account.email = email
        account.username = key
        account.link_slug = key
        account.agreed_to_tos = True
        account.agreed_at = now
        account.updated_at = now

        if reservation is None:
            session.add(UsernameReservation(username=key, uid=uid, created_at=now))

    run_transaction(session_factory or get_session_factory(), _claim)
    logger.info("Reserved username %s for account %s", key, uid)

    return build_profile_url(resolve_public_base_url(base_url), key)
