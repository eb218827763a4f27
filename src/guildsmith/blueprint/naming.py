from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from ..constants import CHANNEL_SEPARATOR

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_name(name: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to one dash, trim dashes.

    - "My Cool Channel!!" -> "my-cool-channel"
    - "SERVER INFO" -> "server-info"
    """
    s = (name or "").lower()
    return _NON_ALNUM_RE.sub("-", s).strip("-")


def effective_emoji_prefix(style: Optional[Mapping[str, Any]], branding: Optional[Mapping[str, Any]]) -> str:
    """Branding emoji overrides the style emoji prefix."""
    return (branding or {}).get("emoji") or (style or {}).get("emojiPrefix") or ""


def format_channel_name(
    raw_name: str,
    style: Optional[Mapping[str, Any]] = None,
    branding: Optional[Mapping[str, Any]] = None,
) -> str:
    """Normalize a channel name and prepend the emoji prefix once.

    ``format_channel_name("My Cool Channel!!", {"emojiPrefix": "💸"})`` gives
    ``"💸│my-cool-channel"``.
    """
    if not raw_name:
        return raw_name
    base = normalize_name(raw_name)
    prefix = effective_emoji_prefix(style, branding)
    if not prefix:
        return base
    if base.startswith(prefix):
        base = base[len(prefix):]
    if base.startswith(CHANNEL_SEPARATOR):
        base = base[len(CHANNEL_SEPARATOR):]
    return f"{prefix}{CHANNEL_SEPARATOR}{base}"


def format_category_name(raw_name: str) -> str:
    """Categories are normalized but never branded."""
    return normalize_name(raw_name)
