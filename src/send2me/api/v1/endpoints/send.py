# src/send2me/api/v1/endpoints/send.py
"""Public message submission endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, status

from send2me.api.v1.dependencies import (
    BearerCredentialDep,
    ClientIpDep,
    CountryDep,
    MessageIntakeDep,
    SessionDep,
)
from send2me.schemas import SendMessageRequest
from send2me.services.intake import MessageSubmission
from send2me.services.metadata import describe_device

router = APIRouter(tags=["messages"])


@router.post("/send", status_code=status.HTTP_200_OK)
async def send_message(
    payload: SendMessageRequest,
    request: Request,
    db: SessionDep,
    intake: MessageIntakeDep,
    credential: BearerCredentialDep,
    client_ip: ClientIpDep,
    country: CountryDep,
) -> dict[str, Any]:
    """Deliver a message to the owner of ``payload.to``.

    Anyone may call this; a bearer credential only matters when the
    sender chooses to reveal who they are.
    """
    submission = MessageSubmission(
        target_username=payload.to,
        text=payload.text,
        anon=payload.anon,
        bot_token=payload.turnstile_token,
        request_ip=client_ip,
        request_user_agent=request.headers.get("user-agent"),
        bearer_credential=credential,
        country=country,
        device=describe_device(request.headers),
    )
    await intake.submit(db, submission)
    return {"ok": True}
