# src/send2me/utils/redact.py
"""Helpers for keeping identifying values out of log output."""

from __future__ import annotations


def redact(value: str | None) -> str | None:
    """Mask all but the first and last two characters of ``value``.

    Example: ``redact("abcdef123") == "ab***23"``.
    """
    if not value:
        return None
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"
