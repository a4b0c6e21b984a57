"""Message intake pipeline.

A submission passes these steps in order, and the first failure rejects it:

1. bot verification
2. recipient lookup by normalized username
3. content moderation
4. metadata hashing (the hashes are the rate-limit keys)
5. per-recipient and global rate limiting, evaluated concurrently
6. optional sender identity, attached only when not anonymous
7. persistence with a server-assigned timestamp

Nothing in the pipeline retries; the sender resubmits the form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from send2me.core.errors import BotVerificationFailedError, RecipientNotFoundError
from send2me.db.time import utcnow
from send2me.models import Message
from send2me.services.identity import IdentityResolver, Principal, split_display_name
from send2me.services.metadata import hash_value
from send2me.services.moderation import validate_message
from send2me.services.rate_limit import RateLimiter
from send2me.services.turnstile import TurnstileVerifier, describe_turnstile_errors
from send2me.services.usernames import get_account_by_username
from send2me.utils.redact import redact

logger = logging.getLogger(__name__)

UNKNOWN_IP = "anonymous"
UNKNOWN_USER_AGENT = "unknown"


@dataclass(frozen=True)
class MessageSubmission:
    """Everything the pipeline needs to decide on one inbound message."""

    target_username: str
    text: str
    anon: bool
    bot_token: str | None
    request_ip: str | None = None
    request_user_agent: str | None = None
    bearer_credential: str | None = None
    country: str | None = None
    device: str | None = None


@dataclass(frozen=True)
class SenderIdentity:
    """Sender fields stored on identified messages."""

    uid: str | None = None
    username: str | None = None
    email: str | None = None
    given_name: str | None = None
    family_name: str | None = None


ANONYMOUS_SENDER = SenderIdentity()


def sender_identity(principal: Principal | None, *, anon: bool) -> SenderIdentity:
    """Return the sender fields to persist; always empty for anonymous messages."""
    if anon or principal is None:
        return ANONYMOUS_SENDER
    given, family = split_display_name(principal.display_name)
    return SenderIdentity(
        uid=principal.uid,
        username=principal.username,
        email=principal.email or None,
        given_name=given,
        family_name=family,
    )


class MessageIntake:
    """Orchestrates verification, moderation and rate limiting for messages."""

    def __init__(
        self,
        verifier: TurnstileVerifier,
        rate_limiter: RateLimiter,
        identity_resolver: IdentityResolver,
    ) -> None:
        self.verifier = verifier
        self.rate_limiter = rate_limiter
        self.identity_resolver = identity_resolver

    async def submit(self, db: Session, submission: MessageSubmission) -> Message:
        """Run a submission through the pipeline and persist it.

        Args:
            db: Session used for the recipient lookup and the final insert
            submission: The inbound message and its request metadata

        Returns:
            The stored message

        Raises:
            BotVerificationFailedError: If the Turnstile token is rejected
            RecipientNotFoundError: If no account owns the target username
            ValidationError: If the text fails moderation
            RateLimitedError: If either rate-limit window is exhausted
            ConfigurationError: If a required secret is missing
        """
        verification = await self.verifier.verify(submission.bot_token, ip=submission.request_ip)
        if not verification.success:
            logger.warning(
                "Turnstile verification failed for send: errors=%s ip=%s",
                verification.errors,
                redact(submission.request_ip),
            )
            raise BotVerificationFailedError(
                describe_turnstile_errors(verification.errors),
                errors=verification.errors,
            )

        recipient = get_account_by_username(db, submission.target_username)
        if recipient is None or recipient.username is None:
            raise RecipientNotFoundError()

        text = validate_message(submission.text)

        ip_hash = hash_value(submission.request_ip or UNKNOWN_IP)
        ua_hash = hash_value(submission.request_user_agent or UNKNOWN_USER_AGENT)

        await self.rate_limiter.assert_not_rate_limited(recipient.uid, ip_hash)

        principal = None
        if not submission.anon:
            principal = self.identity_resolver.resolve(db, submission.bearer_credential)
        sender = sender_identity(principal, anon=submission.anon)

        message = Message(
            to_uid=recipient.uid,
            to_username=recipient.username,
            text=text,
            anon=submission.anon,
            from_uid=sender.uid,
            from_username=sender.username,
            from_email=sender.email,
            from_given_name=sender.given_name,
            from_family_name=sender.family_name,
            ip_hash=ip_hash,
            ua_hash=ua_hash,
            country=submission.country,
            device=submission.device,
            created_at=utcnow(),
        )
        db.add(message)
        db.commit()
        db.refresh(message)

        logger.info(
            "Stored message %s for %s (anon=%s)", message.id, recipient.username, submission.anon
        )
        return message
