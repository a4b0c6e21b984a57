"""Fixed-window rate limiting backed by the database.

Each counter row holds ``count`` and ``window_started_at``. ``increment``
runs in one transaction, and every write is a conditional UPDATE so
concurrent callers cannot lose increments even where row locks are
unavailable (SQLite):

- no row: create ``{count: 1, window_started_at: now}``
- window expired: reset to ``{count: 1, window_started_at: now}``
- window active and full: reject without writing
- window active with room: increment

An expired window resets wholesale rather than sliding, so a caller may
send ``limit`` messages right before expiry and ``limit`` more right after.

Counters live only in the database; nothing is cached in process memory,
so any number of API instances share the same limits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from send2me.core.errors import RateLimitedError
from send2me.core.settings import settings
from send2me.db.session import get_session_factory
from send2me.db.time import now_ms
from send2me.db.transaction import run_transaction
from send2me.models import RateLimitCounter

logger = logging.getLogger(__name__)

SCOPE_TARGET = "target"
SCOPE_GLOBAL = "global"

TARGET_LIMITED_MESSAGE = "You're sending messages too quickly to this user."
GLOBAL_LIMITED_MESSAGE = "Too many messages sent. Please wait a moment."
MISSING_METADATA_MESSAGE = "Missing metadata for rate limiting."


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single counter increment."""

    allowed: bool
    remaining: int


@dataclass(frozen=True)
class RateLimitPolicy:
    """Window length and request budget for one rate-limit scope."""

    window_ms: int
    limit: int


def target_key(recipient_id: str, ip_hash: str) -> str:
    return f"{SCOPE_TARGET}:{recipient_id}:{ip_hash}"


def global_key(ip_hash: str) -> str:
    return f"{SCOPE_GLOBAL}:{ip_hash}"


class RateLimiter:
    """Rate limiter using transactional counters in the database."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        target_policy: RateLimitPolicy | None = None,
        global_policy: RateLimitPolicy | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize rate limiter.

        Args:
            session_factory: Factory for transaction sessions (defaults to the app's).
            target_policy: Window for one sender messaging one recipient.
            global_policy: Window for one sender across all recipients.
            clock: Returns the current time in epoch milliseconds.
        """
        self._session_factory = session_factory
        self._target_policy = target_policy
        self._global_policy = global_policy
        self._clock = clock

    @property
    def session_factory(self) -> sessionmaker[Session]:
        return self._session_factory or get_session_factory()

    @property
    def target_policy(self) -> RateLimitPolicy:
        return self._target_policy or RateLimitPolicy(
            window_ms=settings.rate_limit_target_window_ms,
            limit=settings.rate_limit_target_limit,
        )

    @property
    def global_policy(self) -> RateLimitPolicy:
        return self._global_policy or RateLimitPolicy(
            window_ms=settings.rate_limit_global_window_ms,
            limit=settings.rate_limit_global_limit,
        )

    def increment(self, key: str, window_ms: int, limit: int) -> RateLimitResult:
        """Count one attempt against ``key`` and report whether it is allowed.

        Rejected attempts neither consume quota nor extend the window.
        """
        now = self._clock()
        window_floor = now - window_ms

        def _apply(session: Session) -> RateLimitResult:
            bumped = session.execute(
                update(RateLimitCounter)
                .where(
                    RateLimitCounter.key == key,
                    RateLimitCounter.window_started_at >= window_floor,
                    RateLimitCounter.count < limit,
                )
                .values(count=RateLimitCounter.count + 1)
                .execution_options(synchronize_session=False)
            )
            if bumped.rowcount == 1:
                count = session.scalar(
                    select(RateLimitCounter.count).where(RateLimitCounter.key == key)
                )
                return RateLimitResult(allowed=True, remaining=limit - count)

            reset = session.execute(
                update(RateLimitCounter)
                .where(
                    RateLimitCounter.key == key,
                    RateLimitCounter.window_started_at < window_floor,
                )
                .values(count=1, window_started_at=now)
                .execution_options(synchronize_session=False)
            )
            if reset.rowcount == 1:
                return RateLimitResult(allowed=True, remaining=limit - 1)

            if session.get(RateLimitCounter, key) is not None:
                return RateLimitResult(allowed=False, remaining=0)

            # A concurrent first insert surfaces as IntegrityError and is retried.
            session.add(RateLimitCounter(key=key, count=1, window_started_at=now))
            return RateLimitResult(allowed=True, remaining=limit - 1)

        return run_transaction(self.session_factory, _apply)

    async def check_message_limits(
        self,
        recipient_id: str,
        ip_hash: str,
    ) -> tuple[RateLimitResult, RateLimitResult]:
        """Apply the per-recipient and global windows concurrently.

        Both windows are always evaluated, even when the first one rejects.

        Returns:
            ``(target_result, global_result)``
        """
        target = self.target_policy
        overall = self.global_policy
        target_result, global_result = await asyncio.gather(
            asyncio.to_thread(
                self.increment, target_key(recipient_id, ip_hash), target.window_ms, target.limit
            ),
            asyncio.to_thread(self.increment, global_key(ip_hash), overall.window_ms, overall.limit),
        )
        return target_result, global_result

    async def assert_not_rate_limited(self, recipient_id: str, ip_hash: str | None) -> None:
        """Raise if either message window is exhausted.

        Raises:
            RateLimitedError: With ``scope="target"`` when the per-recipient
                window rejects (it takes precedence), else ``scope="global"``
        """
        if not ip_hash:
            raise RateLimitedError(MISSING_METADATA_MESSAGE)

        target_result, global_result = await self.check_message_limits(recipient_id, ip_hash)

        if not target_result.allowed:
            logger.warning("Rate limit blocked: scope=%s recipient=%s", SCOPE_TARGET, recipient_id)
            raise RateLimitedError(TARGET_LIMITED_MESSAGE, scope=SCOPE_TARGET)
        if not global_result.allowed:
            logger.warning("Rate limit blocked: scope=%s", SCOPE_GLOBAL)
            raise RateLimitedError(GLOBAL_LIMITED_MESSAGE, scope=SCOPE_GLOBAL)


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the shared rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter


def set_rate_limiter(limiter: RateLimiter) -> None:
    """Replace the shared rate limiter instance."""
    global _rate_limiter
    _rate_limiter = limiter
