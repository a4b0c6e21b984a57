# src/send2me/schemas/verification.py
"""Browser verification schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VerifyRequest(BaseModel):
    """Turnstile token presented by the verification page."""

    token: str = Field(..., min_length=1, description="Token produced by the Turnstile widget")
    challenge_id: str | None = Field(None, alias="challengeId")
    user_agent_data: dict[str, Any] | None = Field(None, alias="userAgentData")

    model_config = ConfigDict(populate_by_name=True)


class VerificationStatusResponse(BaseModel):
    ok: bool = True
    verified: bool
