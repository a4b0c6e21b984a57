# tests/services/test_usernames.py
"""Tests for transactional username reservation."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from send2me.core.errors import UsernameTakenError
from send2me.models import Account, UsernameReservation
from send2me.services.usernames import get_account_by_username, reserve_username, username_key

BASE = "https://send2me.example"


def test_username_key_normalizes() -> None:
    assert username_key("Alice") == "alice"
    assert username_key("  ALICE ") == "alice"


def test_reserve_creates_account_and_reservation(session_factory) -> None:
    url = reserve_username(
        uid="u1", username="alice", email="a@example.com", base_url=BASE, session_factory=session_factory
    )

    assert url == "https://send2me.example/u/alice"
    with session_factory() as session:
        account = session.get(Account, "u1")
        assert account.username == "alice"
        assert account.link_slug == "alice"
        assert account.email == "a@example.com"
        assert account.agreed_to_tos is True
        assert account.agreed_at is not None
        assert session.get(UsernameReservation, "alice").uid == "u1"


def test_re_reservation_by_owner_is_idempotent(session_factory) -> None:
    first = reserve_username(
        uid="u1", username="alice", email="a@example.com", base_url=BASE, session_factory=session_factory
    )
    with session_factory() as session:
        created_at = session.get(Account, "u1").created_at

    second = reserve_username(
        uid="u1", username="alice", email="a@example.com", base_url=BASE, session_factory=session_factory
    )

    assert first == second
    with session_factory() as session:
        assert session.query(UsernameReservation).count() == 1
        assert session.get(Account, "u1").created_at == created_at


def test_reservation_by_other_account_is_rejected(session_factory) -> None:
    reserve_username(
        uid="u1", username="alice", email="a@example.com", base_url=BASE, session_factory=session_factory
    )

    with pytest.raises(UsernameTakenError) as exc_info:
        reserve_username(
            uid="u2", username="alice", email="b@example.com", base_url=BASE, session_factory=session_factory
        )

    assert exc_info.value.status_code == 409
    with session_factory() as session:
        assert session.get(UsernameReservation, "alice").uid == "u1"
        assert session.get(Account, "u2") is None


def test_account_can_move_to_new_username(session_factory) -> None:
    reserve_username(
        uid="u1", username="alice", email="a@example.com", base_url=BASE, session_factory=session_factory
    )
    url = reserve_username(
        uid="u1", username="alice.w", email="a@example.com", base_url=BASE, session_factory=session_factory
    )

    assert url == "https://send2me.example/u/alice.w"
    with session_factory() as session:
        assert session.get(Account, "u1").username == "alice.w"
        assert get_account_by_username(session, "ALICE.W").uid == "u1"


def test_local_origin_falls_back_to_configured_url(session_factory) -> None:
    url = reserve_username(
        uid="u1",
        username="alice",
        email="a@example.com",
        base_url="http://localhost:3000",
        session_factory=session_factory,
    )
    assert not url.startswith("http://localhost")
    assert url.endswith("/u/alice")


def test_concurrent_claims_for_one_name_have_a_single_winner(session_factory) -> None:
    start = threading.Barrier(2)

    def claim(uid: str) -> str:
        start.wait()
        try:
            reserve_username(
                uid=uid,
                username="alice",
                email=f"{uid}@example.com",
                base_url=BASE,
                session_factory=session_factory,
            )
        except UsernameTakenError:
            return "taken"
        return "reserved"

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = dict(zip(["u1", "u2"], pool.map(claim, ["u1", "u2"])))

    assert sorted(outcomes.values()) == ["reserved", "taken"]
    winner = next(uid for uid, outcome in outcomes.items() if outcome == "reserved")
    loser = next(uid for uid, outcome in outcomes.items() if outcome == "taken")
    with session_factory() as session:
        assert session.get(UsernameReservation, "alice").uid == winner
        assert session.get(Account, winner).username == "alice"
        assert session.get(Account, loser) is None
