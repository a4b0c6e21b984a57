# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("HASH_SALT", "test-salt")
os.environ.setdefault("TURNSTILE_SECRET_KEY", "test-turnstile-secret")
os.environ.setdefault("IDENTITY_JWT_SECRET", "test-identity-secret")
os.environ.setdefault("VERIFIED_COOKIE_SECURE", "false")

from send2me.core.security import create_identity_token
from send2me.db.session import Base, get_db, get_session_factory
from send2me.main import app as fastapi_app
from send2me.models import Account
from send2me.services.rate_limit import RateLimiter, RateLimitPolicy, get_rate_limiter
from send2me.services.turnstile import TurnstileResult, TurnstileVerifier, get_turnstile_verifier
from send2me.services.usernames import reserve_username

RECIPIENT_UID = "recipient-uid"
RECIPIENT_USERNAME = "alice"
SENDER_UID = "sender-uid"


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    # File-backed so worker threads running transactions see the same data.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'send2me-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def rate_limiter(session_factory: sessionmaker[Session]) -> RateLimiter:
    return RateLimiter(
        session_factory,
        target_policy=RateLimitPolicy(window_ms=10_000, limit=3),
        global_policy=RateLimitPolicy(window_ms=60_000, limit=30),
    )


@pytest.fixture()
def turnstile(mocker: Any) -> Any:
    """Turnstile verifier that accepts every token unless told otherwise."""
    verifier = mocker.AsyncMock(spec=TurnstileVerifier)
    verifier.verify.return_value = TurnstileResult(success=True)
    return verifier


@pytest.fixture()
def app(
    db_session: Session,
    session_factory: sessionmaker[Session],
    rate_limiter: RateLimiter,
    turnstile: Any,
) -> Iterator[FastAPI]:
    def _get_session_override() -> Iterator[Session]:
        yield db_session

    fastapi_app.dependency_overrides[get_db] = _get_session_override
    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    fastapi_app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    fastapi_app.dependency_overrides[get_turnstile_verifier] = lambda: turnstile
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def recipient(session_factory: sessionmaker[Session], db_session: Session) -> Account:
    """Account that owns the ``alice`` link."""
    reserve_username(
        uid=RECIPIENT_UID,
        username=RECIPIENT_USERNAME,
        email="alice@example.com",
        base_url="https://send2me.example",
        session_factory=session_factory,
    )
    account = db_session.get(Account, RECIPIENT_UID)
    assert account is not None
    return account


@pytest.fixture()
def make_token() -> Callable[..., str]:
    def _make(uid: str = SENDER_UID, **claims: Any) -> str:
        return create_identity_token(uid, **claims)

    return _make


@pytest.fixture()
def auth_headers(make_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    def _headers(uid: str = SENDER_UID, **claims: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(uid, **claims)}"}

    return _headers
