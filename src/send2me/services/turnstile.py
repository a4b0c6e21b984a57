"""Cloudflare Turnstile verification client.

This module wraps the Turnstile ``siteverify`` call behind a small
contract: submit a token (plus the client IP when known) and get back a
success flag with the provider's error codes. Transport problems are
reported as synthetic error codes instead of exceptions so callers can
surface them to the user; only a missing server secret raises.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import httpx

from send2me.core.errors import ConfigurationError
from send2me.core.settings import settings
from send2me.utils.redact import redact

# Configure logger for this module
logger = logging.getLogger(__name__)

MIN_TIMEOUT_MS = 1_000
MAX_TIMEOUT_MS = 15_000
DEFAULT_TIMEOUT_MS = 5_000

ERROR_MISSING_INPUT_RESPONSE = "missing-input-response"
ERROR_TIMEOUT = "timeout-or-abort"
ERROR_NETWORK = "network-error"
ERROR_HTTP = "http-error"
ERROR_INVALID_JSON = "invalid-json"

GENERIC_ERROR_MESSAGE = "Verification failed. Please try again."

ERROR_MESSAGES: dict[str, str] = {
    "missing-input-secret": "Verification is not configured on the server.",
    "invalid-input-secret": "Verification is not configured on the server.",
    ERROR_MISSING_INPUT_RESPONSE: "Please complete the verification challenge.",
    "invalid-input-response": "The verification challenge expired or is invalid. Please retry.",
    "bad-request": "The verification request was malformed. Please retry.",
    "timeout-or-duplicate": "The verification challenge expired. Please retry.",
    "internal-error": "The verification service had a problem. Please retry.",
    ERROR_TIMEOUT: "The verification service took too long to respond. Please retry.",
    ERROR_NETWORK: "Could not reach the verification service. Please retry.",
    ERROR_HTTP: "The verification service is unavailable. Please retry shortly.",
    ERROR_INVALID_JSON: "The verification service returned an unexpected response. Please retry.",
}


@dataclass(frozen=True)
class TurnstileResult:
    """Normalized outcome of a verification attempt."""

    success: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TurnstileConfig:
    """Immutable configuration for Turnstile verification."""

    secret_key: str | None
    verify_url: str
    timeout_ms: int


def load_turnstile_config() -> TurnstileConfig:
    """Build configuration object from global settings."""
    return TurnstileConfig(
        secret_key=settings.turnstile_secret_key,
        verify_url=settings.turnstile_verify_url,
        timeout_ms=settings.turnstile_timeout_ms,
    )


def clamp_timeout_ms(timeout_ms: int | None) -> int:
    """Clamp a requested timeout to the supported range."""
    if timeout_ms is None:
        return DEFAULT_TIMEOUT_MS
    return max(MIN_TIMEOUT_MS, min(MAX_TIMEOUT_MS, int(timeout_ms)))


def describe_turnstile_errors(codes: Iterable[str] | None) -> str:
    """Translate provider error codes into a short user-facing message."""
    unique = list(dict.fromkeys(codes or ()))
    messages = list(dict.fromkeys(ERROR_MESSAGES[code] for code in unique if code in ERROR_MESSAGES))
    if not messages:
        return GENERIC_ERROR_MESSAGE
    return " ".join(messages)


class TurnstileVerifier:
    """HTTP client wrapper for the Turnstile ``siteverify`` endpoint."""

    def __init__(self, config: TurnstileConfig | None = None) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def config(self) -> TurnstileConfig:
        return self._config or load_turnstile_config()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient()
        return self._client

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def verify(
        self,
        token: str | None,
        *,
        ip: str | None = None,
        timeout_ms: int | None = None,
    ) -> TurnstileResult:
        """Verify a Turnstile token with the provider.

        Args:
            token: Token produced by the client-side widget
            ip: Originating client IP, forwarded as ``remoteip`` when known
            timeout_ms: Request timeout, clamped to 1-15 seconds

        Returns:
            The provider's verdict, or a synthetic failure for transport errors

        Raises:
            ConfigurationError: If no Turnstile secret is configured
        """
        config = self.config
        if not config.secret_key:
            raise ConfigurationError("Missing TURNSTILE_SECRET_KEY environment variable.")

        if not token:
            return TurnstileResult(success=False, errors=[ERROR_MISSING_INPUT_RESPONSE])

        form = {"secret": config.secret_key, "response": token}
        if ip:
            form["remoteip"] = ip

        timeout_s = clamp_timeout_ms(timeout_ms if timeout_ms is not None else config.timeout_ms) / 1000
        client = await self._ensure_client()

        try:
            # httpx applies its timeout per phase; the outer deadline bounds the whole exchange.
            async with asyncio.timeout(timeout_s):
                response = await client.post(
                    config.verify_url,
                    data=form,
                    timeout=httpx.Timeout(timeout_s),
                )
        except (httpx.TimeoutException, TimeoutError) as exc:
            logger.warning("Turnstile verification timed out after %.1fs: %s", timeout_s, exc)
            return TurnstileResult(success=False, errors=[ERROR_TIMEOUT])
        except httpx.HTTPError as exc:
            logger.warning("Turnstile verification network error: %s", exc)
            return TurnstileResult(success=False, errors=[ERROR_NETWORK])

        if not response.is_success:
            logger.error(
                "Turnstile verification HTTP error %s for ip %s",
                response.status_code,
                redact(ip),
            )
            return TurnstileResult(success=False, errors=[ERROR_HTTP])

        try:
            payload: Any = response.json()
        except ValueError:
            logger.warning("Turnstile verification returned a non-JSON body")
            return TurnstileResult(success=False, errors=[ERROR_INVALID_JSON])
        if not isinstance(payload, dict):
            return TurnstileResult(success=False, errors=[ERROR_INVALID_JSON])

        codes = payload.get("error-codes") or []
        return TurnstileResult(
            success=bool(payload.get("success")),
            errors=[str(code) for code in codes] if isinstance(codes, list) else [],
        )


_verifier: TurnstileVerifier | None = None


def get_turnstile_verifier() -> TurnstileVerifier:
    """Return the shared Turnstile verifier instance."""
    global _verifier
    if _verifier is None:
        _verifier = TurnstileVerifier()
    return _verifier
