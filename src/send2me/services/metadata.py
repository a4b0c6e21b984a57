"""Salted one-way hashing of request metadata.

IPs and user agents are stored only as HMAC-SHA256 digests so repeat
senders can be matched without retaining the raw values.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Mapping

from send2me.core.errors import ConfigurationError
from send2me.core.settings import settings

_MAX_DEVICE_LENGTH = 64


def _get_salt() -> bytes:
    salt = settings.hash_salt
    if not salt:
        raise ConfigurationError("HASH_SALT environment variable is missing.")
    return salt.encode("utf-8")


def hash_value(value: str | None) -> str | None:
    """Return the salted hex digest of ``value``, or None when absent.

    Raises:
        ConfigurationError: If no salt is configured
    """
    if not value:
        return None
    return hmac.new(_get_salt(), value.encode("utf-8"), hashlib.sha256).hexdigest()


def _strip_hint(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip().strip('"').strip()
    return cleaned or None


def describe_device(headers: Mapping[str, str]) -> str | None:
    """Derive a coarse device descriptor from User-Agent client hints.

    Returns e.g. ``"Android (mobile)"`` or ``"Windows"``; None when the
    client sent no platform hint.
    """
    platform = _strip_hint(headers.get("sec-ch-ua-platform"))
    if platform is None:
        return None
    descriptor = platform
    if _strip_hint(headers.get("sec-ch-ua-mobile")) == "?1":
        descriptor = f"{platform} (mobile)"
    return descriptor[:_MAX_DEVICE_LENGTH]
