# src/send2me/api/v1/endpoints/auth.py
"""Session introspection for the signed-in dashboard."""

from __future__ import annotations

from fastapi import APIRouter

from send2me.api.v1.dependencies import OptionalPrincipalDep
from send2me.schemas import SessionResponse, SessionUser
from send2me.services.public_url import build_profile_url, resolve_public_base_url

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/session", response_model=SessionResponse)
async def get_session(principal: OptionalPrincipalDep) -> SessionResponse:
    """Return the caller's account, or ``user: null`` when signed out."""
    if principal is None:
        return SessionResponse(user=None)

    link_url = None
    if principal.username:
        link_url = build_profile_url(resolve_public_base_url(), principal.username)

    return SessionResponse(
        user=SessionUser(
            uid=principal.uid,
            email=principal.email,
            username=principal.username,
            link_slug=principal.link_slug,
            link_url=link_url,
        )
    )
