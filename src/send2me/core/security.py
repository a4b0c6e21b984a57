"""Identity token helpers built on python-jose.

Tokens follow the identity provider's format: ``sub`` is the account id,
``email`` and ``name`` carry the profile claims.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt

from send2me.core.errors import ConfigurationError
from send2me.core.settings import settings


def _require_secret() -> str:
    secret = settings.identity_jwt_secret
    if not secret:
        raise ConfigurationError("Missing IDENTITY_JWT_SECRET environment variable.")
    return secret


def create_identity_token(
    uid: str,
    *,
    email: str | None = None,
    name: str | None = None,
    expires_minutes: int | None = None,
) -> str:
    """Create a signed identity token for the given account.

    Used by development tooling and tests; production tokens come from the
    identity provider.
    """
    claims: dict[str, Any] = {"sub": uid}
    if email is not None:
        claims["email"] = email
    if name is not None:
        claims["name"] = name
    if settings.identity_jwt_audience:
        claims["aud"] = settings.identity_jwt_audience
    if settings.identity_jwt_issuer:
        claims["iss"] = settings.identity_jwt_issuer
    minutes = expires_minutes if expires_minutes is not None else settings.identity_token_expire_minutes
    claims["exp"] = datetime.now(UTC) + timedelta(minutes=minutes)
    encoded: str = jwt.encode(claims, _require_secret(), algorithm=settings.identity_jwt_algorithm)
    return encoded


def decode_identity_token(token: str) -> dict[str, Any]:
    """Verify an identity token and return its claims.

    Raises:
        ConfigurationError: If no verification secret is configured
        JWTError: If the token is malformed, expired or wrongly signed
    """
    options = {"verify_aud": settings.identity_jwt_audience is not None}
    claims: dict[str, Any] = jwt.decode(
        token,
        _require_secret(),
        algorithms=[settings.identity_jwt_algorithm],
        audience=settings.identity_jwt_audience,
        issuer=settings.identity_jwt_issuer,
        options=options,
    )
    return claims
