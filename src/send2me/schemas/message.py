# src/send2me/schemas/message.py
"""Message-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SendMessageRequest(BaseModel):
    """Payload submitted from a public profile page."""

    to: str = Field(..., min_length=3, max_length=32, description="Recipient username")
    text: str = Field(..., description="Message body; length is checked by moderation")
    anon: bool = Field(True, description="Hide the sender's identity from the recipient")
    turnstile_token: str | None = Field(
        None,
        alias="turnstileToken",
        description="Token produced by the Turnstile widget",
    )

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    """Message as shown in the recipient's inbox."""

    id: str
    text: str
    created_at: datetime
    anon: bool
    from_username: str | None = None
    from_email: str | None = None
    from_given_name: str | None = None
    from_family_name: str | None = None
    full_name: str | None = None
    country: str | None = None
    device: str | None = None

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MessageListResponse(BaseModel):
    ok: bool = True
    messages: list[MessageResponse]


class MessageStats(BaseModel):
    total: int
    anon: int
    identified: int


class MessageStatsResponse(BaseModel):
    ok: bool = True
    stats: MessageStats


MessageFilterParam = Literal["all", "anon", "identified"]
