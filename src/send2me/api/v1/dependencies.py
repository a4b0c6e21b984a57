"""Shared API dependencies for authentication and request metadata."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from send2me.core.errors import UnauthenticatedError
from send2me.core.settings import settings
from send2me.db.session import get_db, get_session_factory
from send2me.services.identity import IdentityResolver, Principal, get_identity_resolver
from send2me.services.intake import MessageIntake
from send2me.services.rate_limit import RateLimiter, get_rate_limiter
from send2me.services.turnstile import TurnstileVerifier, get_turnstile_verifier

# Bearer credentials are optional on public routes, so never auto-reject
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SessionFactoryDep = Annotated[sessionmaker[Session], Depends(get_session_factory)]

VerifierDep = Annotated[TurnstileVerifier, Depends(get_turnstile_verifier)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
IdentityResolverDep = Annotated[IdentityResolver, Depends(get_identity_resolver)]


def get_bearer_credential(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the raw bearer token, if the caller sent one."""
    if credentials is None:
        return None
    return credentials.credentials


BearerCredentialDep = Annotated[str | None, Depends(get_bearer_credential)]


def get_optional_principal(
    credential: BearerCredentialDep,
    db: SessionDep,
    resolver: IdentityResolverDep,
) -> Principal | None:
    """Resolve the signed-in caller, or None for anonymous callers."""
    return resolver.resolve(db, credential)


OptionalPrincipalDep = Annotated[Principal | None, Depends(get_optional_principal)]


def get_current_principal(principal: OptionalPrincipalDep) -> Principal:
    """Require a signed-in caller.

    Raises:
        UnauthenticatedError: If the credential is missing or invalid
    """
    if principal is None:
        raise UnauthenticatedError()
    return principal


CurrentPrincipalDep = Annotated[Principal, Depends(get_current_principal)]


def get_client_ip(request: Request) -> str | None:
    """Return the originating client IP.

    The first ``X-Forwarded-For`` entry wins when forwarded headers are
    trusted; otherwise the socket peer is used.
    """
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client is not None:
        return request.client.host
    return None


ClientIpDep = Annotated[str | None, Depends(get_client_ip)]


def get_country(request: Request) -> str | None:
    value = request.headers.get(settings.country_header, "").strip()
    return value or None


CountryDep = Annotated[str | None, Depends(get_country)]


def get_message_intake(
    verifier: VerifierDep,
    rate_limiter: RateLimiterDep,
    resolver: IdentityResolverDep,
) -> MessageIntake:
    return MessageIntake(verifier, rate_limiter, resolver)


MessageIntakeDep = Annotated[MessageIntake, Depends(get_message_intake)]
