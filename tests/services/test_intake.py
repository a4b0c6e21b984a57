# tests/services/test_intake.py
"""Tests for the message intake pipeline."""

from dataclasses import replace

import pytest

from send2me.core.errors import (
    BotVerificationFailedError,
    ContainsLinkError,
    RateLimitedError,
    RecipientNotFoundError,
)
from send2me.core.security import create_identity_token
from send2me.models import Message, RateLimitCounter
from send2me.services.identity import IdentityResolver
from send2me.services.intake import MessageIntake, MessageSubmission, sender_identity
from send2me.services.metadata import hash_value
from send2me.services.turnstile import TurnstileResult


@pytest.fixture()
def intake(turnstile, rate_limiter) -> MessageIntake:
    return MessageIntake(turnstile, rate_limiter, IdentityResolver())


@pytest.fixture()
def submission() -> MessageSubmission:
    return MessageSubmission(
        target_username="alice",
        text="  hello there friend ",
        anon=True,
        bot_token="turnstile-token",
        request_ip="203.0.113.7",
        request_user_agent="Mozilla/5.0",
        country="IN",
        device="Android (mobile)",
    )


@pytest.mark.asyncio
async def test_anonymous_message_is_stored(intake, submission, db_session, recipient) -> None:
    message = await intake.submit(db_session, submission)

    assert message.to_uid == recipient.uid
    assert message.to_username == "alice"
    assert message.text == "hello there friend"
    assert message.anon is True
    assert message.from_uid is None
    assert message.ip_hash == hash_value("203.0.113.7")
    assert message.ua_hash == hash_value("Mozilla/5.0")
    assert message.country == "IN"
    assert message.device == "Android (mobile)"
    assert message.created_at is not None


@pytest.mark.asyncio
async def test_anon_wins_over_authenticated_sender(
    intake, submission, db_session, recipient
) -> None:
    token = create_identity_token("sender-1", email="bob@example.com", name="Bob Smith")

    message = await intake.submit(db_session, replace(submission, bearer_credential=token))

    assert message.anon is True
    assert message.from_uid is None
    assert message.from_email is None
    assert message.from_given_name is None
    assert message.from_family_name is None


@pytest.mark.asyncio
async def test_identified_message_carries_sender(intake, submission, db_session, recipient) -> None:
    token = create_identity_token("sender-1", email="bob@example.com", name="Bob van Smith")

    message = await intake.submit(
        db_session, replace(submission, anon=False, bearer_credential=token)
    )

    assert message.anon is False
    assert message.from_uid == "sender-1"
    assert message.from_email == "bob@example.com"
    assert message.from_given_name == "Bob"
    assert message.from_family_name == "van Smith"
    assert message.full_name == "Bob van Smith"


@pytest.mark.asyncio
async def test_identified_without_credential_stores_no_sender(
    intake, submission, db_session, recipient
) -> None:
    message = await intake.submit(db_session, replace(submission, anon=False))

    assert message.anon is False
    assert message.from_uid is None


@pytest.mark.asyncio
async def test_recipient_lookup_is_normalized(intake, submission, db_session, recipient) -> None:
    message = await intake.submit(db_session, replace(submission, target_username="ALICE"))
    assert message.to_uid == recipient.uid


@pytest.mark.asyncio
async def test_bot_failure_stops_pipeline(
    intake, submission, turnstile, db_session, recipient, session_factory
) -> None:
    turnstile.verify.return_value = TurnstileResult(success=False, errors=["invalid-input-response"])

    with pytest.raises(BotVerificationFailedError) as exc_info:
        await intake.submit(db_session, submission)

    assert exc_info.value.errors == ["invalid-input-response"]
    assert "expired or is invalid" in exc_info.value.message
    with session_factory() as session:
        assert session.query(Message).count() == 0
        assert session.query(RateLimitCounter).count() == 0


@pytest.mark.asyncio
async def test_unknown_recipient(intake, submission, db_session) -> None:
    with pytest.raises(RecipientNotFoundError):
        await intake.submit(db_session, replace(submission, target_username="nobody"))


@pytest.mark.asyncio
async def test_moderation_runs_before_rate_limiting(
    intake, submission, db_session, recipient, session_factory
) -> None:
    with pytest.raises(ContainsLinkError):
        await intake.submit(db_session, replace(submission, text="visit http://example.com now"))

    with session_factory() as session:
        assert session.query(RateLimitCounter).count() == 0


@pytest.mark.asyncio
async def test_fourth_message_in_window_is_rate_limited(
    intake, submission, db_session, recipient, session_factory
) -> None:
    for _ in range(3):
        await intake.submit(db_session, submission)

    with pytest.raises(RateLimitedError) as exc_info:
        await intake.submit(db_session, submission)

    assert exc_info.value.scope == "target"
    with session_factory() as session:
        assert session.query(Message).count() == 3


@pytest.mark.asyncio
async def test_missing_ip_and_user_agent_use_placeholders(
    intake, submission, db_session, recipient
) -> None:
    message = await intake.submit(
        db_session, replace(submission, request_ip=None, request_user_agent=None)
    )

    assert message.ip_hash == hash_value("anonymous")
    assert message.ua_hash == hash_value("unknown")


def test_sender_identity_without_principal_is_empty() -> None:
    assert sender_identity(None, anon=False).uid is None
