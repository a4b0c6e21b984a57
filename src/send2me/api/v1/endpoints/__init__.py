# src/send2me/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .link import router as link_router
from .messages import router as messages_router
from .send import router as send_router
from .users import router as users_router
from .verify import router as verify_router

__all__ = [
    "auth_router",
    "link_router",
    "messages_router",
    "send_router",
    "users_router",
    "verify_router",
]
