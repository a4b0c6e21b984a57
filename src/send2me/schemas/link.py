# src/send2me/schemas/link.py
"""Schemas for claiming a public link and describing account sessions."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LinkRequest(BaseModel):
    """Request to reserve a username and publish the profile link."""

    username: str = Field(..., min_length=3, max_length=20)
    agree: bool = Field(..., description="Whether the user accepted the terms")


class LinkResponse(BaseModel):
    ok: bool = True
    public_url: str = Field(..., alias="publicUrl")

    model_config = ConfigDict(populate_by_name=True)


class SessionUser(BaseModel):
    """Signed-in account as returned to the dashboard."""

    uid: str
    email: str
    username: str | None = None
    link_slug: str | None = None
    link_url: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionResponse(BaseModel):
    ok: bool = True
    user: SessionUser | None = None


class PublicProfile(BaseModel):
    """Public view of an account, enough to render its send page."""

    username: str
    link_url: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PublicProfileResponse(BaseModel):
    ok: bool = True
    user: PublicProfile
