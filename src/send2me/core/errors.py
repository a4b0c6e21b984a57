"""Error taxonomy for the Send2Me API.

Every rejection the service can produce is a ``Send2MeError`` subclass
carrying the HTTP status it maps to and a short, user-safe message.
"""

from __future__ import annotations

from collections.abc import Sequence


class Send2MeError(Exception):
    """Base exception for errors surfaced to API callers.

    Attributes:
        message: Human-readable message safe to return to the caller
        status_code: HTTP status code used when rendering the error
    """

    status_code: int = 500
    default_message: str = "Something went wrong. Please try again later."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(Send2MeError):
    """Raised when a required secret or setting is missing."""

    default_message = "The server is not configured correctly."


class TransactionConflictError(Send2MeError):
    """Raised when a store transaction keeps conflicting after all retries."""

    default_message = "The server is busy right now. Please try again."


class ValidationError(Send2MeError):
    """User-correctable input error."""

    status_code = 400
    default_message = "Invalid request payload."


class InvalidMessageError(ValidationError):
    default_message = "Message must be a string."


class MessageTooShortError(ValidationError):
    default_message = "Message must be at least 2 characters."


class MessageTooLongError(ValidationError):
    default_message = "Message must be at most 500 characters."


class PolicyViolationError(ValidationError):
    default_message = "Message violates our community guidelines."


class ContainsLinkError(ValidationError):
    default_message = "Please remove links before sending."


class InvalidUsernameError(ValidationError):
    default_message = (
        "Username must be 3-20 characters, lowercase letters, numbers, dots, or underscores."
    )


class ReservedUsernameError(ValidationError):
    default_message = "This username is reserved. Please choose another."


class TermsNotAcceptedError(ValidationError):
    default_message = "You must accept the terms to continue."


class UnauthenticatedError(Send2MeError):
    status_code = 401
    default_message = "Unauthorized"


class RecipientNotFoundError(Send2MeError):
    status_code = 404
    default_message = "Receiver not found."


class UserNotFoundError(Send2MeError):
    status_code = 404
    default_message = "User not found."


class UsernameTakenError(Send2MeError):
    status_code = 409
    default_message = "Username already taken."


class BotVerificationFailedError(Send2MeError):
    """Raised when the bot-verification provider rejects a token.

    Attributes:
        errors: Provider error codes, safe to surface to the caller
    """

    status_code = 400
    default_message = "Verification failed. Please try again."

    def __init__(self, message: str | None = None, errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


class RateLimitedError(Send2MeError):
    """Raised when a rate-limit window rejects a submission.

    Attributes:
        scope: Which window tripped (``"target"`` or ``"global"``), if known
    """

    status_code = 429
    default_message = "Too many requests. Please slow down."

    def __init__(self, message: str | None = None, scope: str | None = None) -> None:
        super().__init__(message)
        self.scope = scope
