# tests/services/test_identity.py
"""Tests for bearer credential resolution."""

import pytest

from send2me.core.errors import ConfigurationError
from send2me.core.security import create_identity_token
from send2me.core.settings import settings
from send2me.services.identity import IdentityResolver, split_display_name


@pytest.fixture()
def resolver() -> IdentityResolver:
    return IdentityResolver()


def test_split_display_name() -> None:
    assert split_display_name("Ada Lovelace") == ("Ada", "Lovelace")
    assert split_display_name("Ada King Lovelace") == ("Ada", "King Lovelace")
    assert split_display_name("Cher") == ("Cher", None)
    assert split_display_name("  ") == (None, None)
    assert split_display_name(None) == (None, None)


def test_no_credential_is_anonymous(resolver: IdentityResolver, db_session) -> None:
    assert resolver.resolve(db_session, None) is None


def test_valid_token_resolves_principal(resolver: IdentityResolver, db_session) -> None:
    token = create_identity_token("u1", email="ada@example.com", name="Ada Lovelace")

    principal = resolver.resolve(db_session, token)

    assert principal.uid == "u1"
    assert principal.email == "ada@example.com"
    assert principal.display_name == "Ada Lovelace"
    assert principal.username is None


def test_profile_fields_come_from_account(resolver: IdentityResolver, db_session, recipient) -> None:
    token = create_identity_token(recipient.uid)

    principal = resolver.resolve(db_session, token)

    assert principal.username == "alice"
    assert principal.link_slug == "alice"
    assert principal.email == "alice@example.com"
    assert principal.display_name == "alice"


def test_expired_token_is_ignored(resolver: IdentityResolver, db_session) -> None:
    token = create_identity_token("u1", email="ada@example.com", expires_minutes=-5)
    assert resolver.resolve(db_session, token) is None


def test_garbage_token_is_ignored(resolver: IdentityResolver, db_session) -> None:
    assert resolver.resolve(db_session, "not-a-jwt") is None


def test_wrongly_signed_token_is_ignored(
    resolver: IdentityResolver, db_session, monkeypatch: pytest.MonkeyPatch
) -> None:
    token = create_identity_token("u1")
    monkeypatch.setattr(settings, "identity_jwt_secret", "rotated-secret")
    assert resolver.resolve(db_session, token) is None


def test_missing_secret_with_credential_raises(
    resolver: IdentityResolver, db_session, monkeypatch: pytest.MonkeyPatch
) -> None:
    token = create_identity_token("u1")
    monkeypatch.setattr(settings, "identity_jwt_secret", None)
    with pytest.raises(ConfigurationError):
        resolver.resolve(db_session, token)
