# src/send2me/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    link_router,
    messages_router,
    send_router,
    users_router,
    verify_router,
)

__all__ = [
    "auth_router",
    "link_router",
    "messages_router",
    "send_router",
    "users_router",
    "verify_router",
]
