"""Resolution of the public base URL used in shareable profile links.

Candidates are evaluated in a fixed order (caller origin, configured
URLs, hardcoded fallback) and the first well-formed, non-local value wins,
so a localhost origin is never persisted as someone's public link.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

from send2me.core.settings import settings

FALLBACK_BASE_URL = "https://send2me.vercel.app"

LOCAL_HOSTNAMES = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1", "[::1]"})

_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z\d+\-.]*://")
_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class BaseUrlCandidate:
    """One configuration source for the public base URL."""

    source: str
    value: str | None
    allow_local: bool = False


def _ensure_protocol(raw: str) -> str:
    trimmed = raw.strip()
    if not trimmed:
        return trimmed
    if _SCHEME_PATTERN.match(trimmed):
        return trimmed
    if trimmed.startswith("//"):
        return f"https:{trimmed}"
    return f"https://{trimmed}"


def normalize_base_url(raw: str | None) -> str | None:
    """Return the origin (``scheme://host[:port]``) of ``raw`` or None if malformed."""
    if not raw:
        return None
    with_protocol = _ensure_protocol(raw)
    if not with_protocol:
        return None

    try:
        parts = urlsplit(with_protocol)
        port = parts.port
    except ValueError:
        return None

    hostname = parts.hostname
    if not parts.scheme or not hostname:
        return None

    scheme = parts.scheme.lower()
    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    return f"{scheme}://{host}"


def is_probably_local(normalized_base: str) -> bool:
    """Return True if the base URL points at a loopback or ``.local`` host."""
    try:
        hostname = urlsplit(normalized_base).hostname
    except ValueError:
        return True
    if not hostname:
        return True
    value = hostname.lower()
    if value in LOCAL_HOSTNAMES:
        return True
    return value.endswith(".localhost") or value.endswith(".local")


def configured_candidates() -> list[BaseUrlCandidate]:
    """Return the configured base URL sources in priority order."""
    return [
        BaseUrlCandidate(source=name, value=value)
        for name, value in settings.base_url_candidates
    ]


def resolve_public_base_url(
    preferred: str | None = None,
    *,
    allow_local: bool = False,
    candidates: Sequence[BaseUrlCandidate] | None = None,
) -> str:
    """Pick the public base URL from the prioritized candidate list.

    Args:
        preferred: Explicit origin supplied by the caller (checked first)
        allow_local: Whether ``preferred`` may be a local/loopback origin
        candidates: Configured sources; defaults to the settings-backed list

    Returns:
        The first valid candidate's origin, or the production fallback
    """
    ordered = [
        BaseUrlCandidate(source="preferred", value=preferred, allow_local=allow_local),
        *(candidates if candidates is not None else configured_candidates()),
        BaseUrlCandidate(source="fallback", value=FALLBACK_BASE_URL, allow_local=True),
    ]
    for candidate in ordered:
        normalized = normalize_base_url(candidate.value)
        if not normalized:
            continue
        if not candidate.allow_local and is_probably_local(normalized):
            continue
        return normalized
    return FALLBACK_BASE_URL


def build_profile_url(base: str, username: str) -> str:
    """Join a base URL and a username into the public profile link."""
    normalized = normalize_base_url(base) or resolve_public_base_url(allow_local=True)
    return f"{normalized.rstrip('/')}/u/{quote(username.strip(), safe='')}"
