# src/send2me/api/v1/endpoints/link.py
"""Username reservation endpoint."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request

from send2me.api.v1.dependencies import CurrentPrincipalDep, SessionFactoryDep
from send2me.core.errors import TermsNotAcceptedError
from send2me.schemas import LinkRequest, LinkResponse
from send2me.services.moderation import validate_username
from send2me.services.usernames import reserve_username

router = APIRouter(tags=["link"])


@router.post("/link", response_model=LinkResponse)
async def create_link(
    payload: LinkRequest,
    request: Request,
    principal: CurrentPrincipalDep,
    session_factory: SessionFactoryDep,
) -> LinkResponse:
    """Claim a username for the signed-in account and return its public link."""
    if not payload.agree:
        raise TermsNotAcceptedError()

    validate_username(payload.username)

    origin = request.headers.get("origin") or str(request.base_url)
    public_url = await asyncio.to_thread(
        reserve_username,
        uid=principal.uid,
        username=payload.username,
        email=principal.email,
        base_url=origin,
        session_factory=session_factory,
    )
    return LinkResponse(public_url=public_url)
