# src/send2me/api/v1/endpoints/verify.py
"""Browser verification endpoints backing the interstitial check page."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Request, Response

from send2me.api.v1.dependencies import ClientIpDep, SessionDep, SessionFactoryDep, VerifierDep
from send2me.core.errors import BotVerificationFailedError
from send2me.core.settings import settings
from send2me.models.browser_verification import (
    VERIFICATION_STATUS_FAILED,
    VERIFICATION_STATUS_PASSED,
)
from send2me.schemas import VerificationStatusResponse, VerifyRequest
from send2me.services.browser_verification import (
    get_verification_for_ip,
    has_passed_verification,
    upsert_verification_record,
)
from send2me.services.turnstile import describe_turnstile_errors
from send2me.utils.redact import redact

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verify", tags=["verification"])

VERIFIED_COOKIE_NAME = "verified"


@router.post("")
async def verify_browser(
    payload: VerifyRequest,
    request: Request,
    response: Response,
    session_factory: SessionFactoryDep,
    verifier: VerifierDep,
    client_ip: ClientIpDep,
) -> dict[str, Any]:
    """Check a Turnstile token and remember the outcome for the caller's IP."""
    result = await verifier.verify(payload.token, ip=client_ip)
    outcome = VERIFICATION_STATUS_PASSED if result.success else VERIFICATION_STATUS_FAILED

    if client_ip:
        await asyncio.to_thread(
            upsert_verification_record,
            session_factory,
            ip=client_ip,
            status=outcome,
            challenge_id=payload.challenge_id,
            user_agent=request.headers.get("user-agent"),
            user_agent_data=payload.user_agent_data,
        )
    else:
        logger.warning("Skipping verification record: client IP unknown")

    if not result.success:
        logger.warning(
            "Browser verification rejected: errors=%s ip=%s", result.errors, redact(client_ip)
        )
        raise BotVerificationFailedError(describe_turnstile_errors(result.errors), errors=result.errors)

    response.set_cookie(
        VERIFIED_COOKIE_NAME,
        "1",
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.verified_cookie_secure,
    )
    return {"ok": True}


@router.get("/status", response_model=VerificationStatusResponse)
async def verification_status(db: SessionDep, client_ip: ClientIpDep) -> VerificationStatusResponse:
    """Report whether the caller's IP has a passing verification on record."""
    record = get_verification_for_ip(db, client_ip)
    return VerificationStatusResponse(verified=has_passed_verification(record))
