# src/send2me/services/moderation.py
"""Content and username moderation.

All checks here are pure functions over strings. ``validate_message`` and
``validate_username`` raise a ``ValidationError`` subclass on the first
violation; the order of checks (length, then policy, then links) is part of
their contract.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Final

from send2me.core.errors import (
    ContainsLinkError,
    InvalidMessageError,
    InvalidUsernameError,
    MessageTooLongError,
    MessageTooShortError,
    PolicyViolationError,
    ReservedUsernameError,
    ValidationError,
)

MIN_MESSAGE_LENGTH: Final[int] = 2
MAX_MESSAGE_LENGTH: Final[int] = 500

BLOCKED_TERMS: Final[tuple[str, ...]] = (
    # English
    "fuck", "shit", "bitch", "cunt", "asshole", "bastard", "slut", "whore",
    "dick", "pussy", "faggot", "retard", "moron", "stupid", "dumbass",
    "motherfucker", "fuk", "fcuk", "fck", "loser", "jerk", "pervert",
    "idiot", "screw you", "bullshit", "trash", "garbage", "waste",
    "kill yourself", "go die", "kms", "kys",
    # Hindi
    "chutiya", "madarchod", "bhenchod", "gaand", "randi", "haraami", "kamina",
    "kutte", "kutti", "suar", "lavde", "launde", "lund", "randi ke bacche",
    "chod", "chodna", "chodne", "tera baap", "teri maa", "teri behen",
    "ullu ke pathe", "behen ke laude", "muh me le", "teri maa ka", "randi ka baccha",
    # Marathi
    "lavda", "zavlya", "bayko chod", "madrchod", "porki", "gandu", "salli",
    "chinal", "shikarna", "padu", "khalya", "lavkar mar", "boka",
    "randi cha pille", "zop la lav",
    # Disguised, leetspeak and harassment
    "f@ck", "phuck", "fking", "fukking", "b!tch", "b@stard", "b@st@rd",
    "m0therfucker", "d1ck", "p3nis", "pusy", "s3x", "horny", "r@pe", "rapist",
    "molest", "sexual assault", "harass", "sexually harass", "pedophile",
    "pedo", "child abuse", "kill u", "go to hell", "hate you",
)

RESERVED_USERNAMES: Final[frozenset[str]] = frozenset(
    {"admin", "api", "help", "terms", "privacy", "u", "dashboard", "login", "logout", "signup"}
)

# Applied only to characters outside the allowed set (letters, digits,
# whitespace, "." and "_"); anything not listed becomes a space.
COLLAPSED_CHAR_MAP: Final[dict[str, str]] = {
    "0": "o",
    "1": "i",
    "3": "e",
    "4": "a",
    "@": "a",
    "$": "s",
    "!": "i",
    "7": "t",
    "5": "s",
    "9": "g",
    "8": "b",
    "2": "z",
}

_SPACING_DIACRITICS: Final[frozenset[str]] = frozenset("^`")

_USERNAME_PATTERN: Final = re.compile(r"^[a-z0-9][a-z0-9_.]{1,18}[a-z0-9]$")

_URL_PATTERN: Final = re.compile(
    r"((https?://|www\.)\S+)"
    r"|(mailto:|ftp:)\S+"
    r"|(\S+\.(com|net|org|io|me|co|app|xyz|in|gov)(/|\b))",
    re.IGNORECASE,
)


def _is_diacritic(char: str) -> bool:
    return unicodedata.combining(char) != 0 or char in _SPACING_DIACRITICS


def _is_allowed(char: str) -> bool:
    return char.isalpha() or char.isnumeric() or char.isspace() or char in "._"


def normalize(text: str) -> str:
    """Return the canonical form used for policy matching and usernames.

    Lower-cases, NFKD-decomposes, strips diacritics, collapses leetspeak
    symbols, squeezes whitespace and trims. The result is a fixed point:
    ``normalize(normalize(s)) == normalize(s)``.
    """
    decomposed = unicodedata.normalize("NFKD", text.lower())
    # Compatibility decomposition can surface upper-case letters (e.g. U+210C).
    stripped = "".join(char for char in decomposed if not _is_diacritic(char)).lower()
    collapsed = "".join(
        char if _is_allowed(char) else COLLAPSED_CHAR_MAP.get(char, " ") for char in stripped
    )
    return " ".join(collapsed.split())


def contains_links(text: str) -> bool:
    """Return True if the text looks like it contains a URL or bare domain.

    This is a heuristic gate; false negatives are acceptable.
    """
    return _URL_PATTERN.search(text) is not None


def violates_policy(text: str) -> bool:
    """Return True if the normalized text contains any blocked term."""
    normalized = normalize(text)
    return any(term in normalized for term in BLOCKED_TERMS)


def validate_username(username: str) -> str:
    """Validate a requested username and return it unchanged.

    The format is checked against the raw value; the reserved-word check
    uses the normalized form.

    Raises:
        InvalidUsernameError: If the raw value is not 3-20 allowed characters
        ReservedUsernameError: If the normalized value is a reserved word
    """
    if not isinstance(username, str) or not _USERNAME_PATTERN.fullmatch(username):
        raise InvalidUsernameError()
    normalized = "".join(normalize(username).split())
    if normalized in RESERVED_USERNAMES:
        raise ReservedUsernameError()
    return username


def validate_message(text: object) -> str:
    """Validate message text and return it trimmed.

    Raises:
        InvalidMessageError: If the value is not a string
        MessageTooShortError: If fewer than 2 characters remain after trimming
        MessageTooLongError: If more than 500 characters remain after trimming
        PolicyViolationError: If the text contains a blocked term
        ContainsLinkError: If the text contains a link
    """
    if not isinstance(text, str):
        raise InvalidMessageError()
    trimmed = text.strip()
    if len(trimmed) < MIN_MESSAGE_LENGTH:
        raise MessageTooShortError()
    if len(trimmed) > MAX_MESSAGE_LENGTH:
        raise MessageTooLongError()
    if violates_policy(trimmed):
        raise PolicyViolationError()
    if contains_links(trimmed):
        raise ContainsLinkError()
    return trimmed


def message_client_hint(text: object) -> str | None:
    """Return the first violation message for live feedback, or None."""
    try:
        validate_message(text)
    except ValidationError as exc:
        return exc.message
    return None


def get_reserved_usernames() -> list[str]:
    """Return the reserved usernames in a stable order."""
    return sorted(RESERVED_USERNAMES)
