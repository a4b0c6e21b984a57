# src/send2me/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .link import (
    LinkRequest,
    LinkResponse,
    PublicProfile,
    PublicProfileResponse,
    SessionResponse,
    SessionUser,
)
from .message import (
    MessageFilterParam,
    MessageListResponse,
    MessageResponse,
    MessageStats,
    MessageStatsResponse,
    SendMessageRequest,
)
from .verification import VerificationStatusResponse, VerifyRequest

__all__ = [
    "LinkRequest", "LinkResponse",
    "PublicProfile", "PublicProfileResponse",
    "SessionResponse", "SessionUser",
    "MessageFilterParam", "MessageListResponse", "MessageResponse",
    "MessageStats", "MessageStatsResponse", "SendMessageRequest",
    "VerificationStatusResponse", "VerifyRequest",
]
