# src/send2me/models/__init__.py
"""SQLAlchemy models for the Send2Me application."""

from .account import Account, UsernameReservation
from .browser_verification import BrowserVerification
from .message import Message
from .rate_limit import RateLimitCounter

__all__ = [
    "Account", "UsernameReservation",
    "BrowserVerification",
    "Message",
    "RateLimitCounter",
]
