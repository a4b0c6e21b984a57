# src/send2me/api/v1/endpoints/users.py
"""Public profile lookup."""

from __future__ import annotations

from fastapi import APIRouter

from send2me.api.v1.dependencies import SessionDep
from send2me.core.errors import UserNotFoundError
from send2me.schemas import PublicProfile, PublicProfileResponse
from send2me.services.public_url import build_profile_url, resolve_public_base_url
from send2me.services.usernames import get_account_by_username

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{username}", response_model=PublicProfileResponse)
async def get_public_profile(username: str, db: SessionDep) -> PublicProfileResponse:
    """Resolve a username as typed in a profile link."""
    account = get_account_by_username(db, username)
    if account is None or account.username is None:
        raise UserNotFoundError()
    return PublicProfileResponse(
        user=PublicProfile(
            username=account.username,
            link_url=build_profile_url(resolve_public_base_url(), account.username),
        )
    )
