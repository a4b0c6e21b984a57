"""Resolution of bearer credentials to signed-in principals."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jose import JWTError
from sqlalchemy.orm import Session

from send2me.core.security import decode_identity_token
from send2me.services.usernames import get_account

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Signed-in caller as seen by the API."""

    uid: str
    email: str
    display_name: str | None
    username: str | None = None
    link_slug: str | None = None


def split_display_name(display_name: str | None) -> tuple[str | None, str | None]:
    """Split a display name into ``(given, family)`` on the first whitespace."""
    if not display_name:
        return None, None
    parts = display_name.split()
    if not parts:
        return None, None
    family = " ".join(parts[1:]) or None
    return parts[0], family


class IdentityResolver:
    """Turns identity-provider tokens into ``Principal`` objects."""

    def resolve(self, db: Session, credential: str | None) -> Principal | None:
        """Return the principal for ``credential``, or None.

        A missing credential is the anonymous-caller case; an invalid or
        expired one is logged and treated the same way.

        Raises:
            ConfigurationError: If a credential is present but no
                verification secret is configured
        """
        if not credential:
            return None

        try:
            claims = decode_identity_token(credential)
        except JWTError as exc:
            logger.warning("Failed to verify session token: %s", exc)
            return None

        uid = claims.get("sub")
        if not uid:
            logger.warning("Session token is missing a subject claim")
            return None

        account = get_account(db, str(uid))
        email = claims.get("email") or (account.email if account else None) or ""
        display_name = claims.get("name") or None
        if not display_name and email:
            display_name = email.split("@")[0]

        return Principal(
            uid=str(uid),
            email=email,
            display_name=display_name,
            username=account.username if account else None,
            link_slug=account.link_slug if account else None,
        )


_resolver: IdentityResolver | None = None


def get_identity_resolver() -> IdentityResolver:
    """Return the shared identity resolver instance."""
    global _resolver
    if _resolver is None:
        _resolver = IdentityResolver()
    return _resolver
