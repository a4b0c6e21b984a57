# src/send2me/api/v1/endpoints/messages.py
"""Inbox endpoints for the signed-in recipient."""

from __future__ import annotations

from fastapi import APIRouter, Query

from send2me.api.v1.dependencies import CurrentPrincipalDep, SessionDep
from send2me.schemas import (
    MessageFilterParam,
    MessageListResponse,
    MessageResponse,
    MessageStats,
    MessageStatsResponse,
)
from send2me.services.inbox import get_message_stats, list_messages

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=MessageListResponse)
async def get_messages(
    principal: CurrentPrincipalDep,
    db: SessionDep,
    message_filter: MessageFilterParam = Query("all", alias="filter"),
) -> MessageListResponse:
    """List the newest messages addressed to the caller."""
    messages = list_messages(db, principal.uid, message_filter=message_filter)
    return MessageListResponse(
        messages=[MessageResponse.model_validate(message) for message in messages]
    )


@router.get("/stats", response_model=MessageStatsResponse)
async def get_stats(principal: CurrentPrincipalDep, db: SessionDep) -> MessageStatsResponse:
    return MessageStatsResponse(stats=MessageStats(**get_message_stats(db, principal.uid)))
