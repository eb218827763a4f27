from __future__ import annotations

import re
from typing import Any, Mapping, Optional

import discord

from ..constants import (
    BULLET,
    DEFAULT_EMBED_COLOR,
    DEFAULT_HEADER_EMOJI,
    HEADER_EMOJIS,
    MAX_EMBED_DESCRIPTION,
    MAX_EMBED_TITLE,
    MAX_FIELD_NAME,
    MAX_FIELD_VALUE,
    MAX_FIELDS_PER_EMBED,
    SECTION_ARROW,
    THEME_COLORS,
    ZERO_WIDTH,
)
from .roles import parse_hex_color

_BLANK_LINES_RE = re.compile(r"\n{3,}")


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def theme_color(style: Optional[Mapping[str, Any]], branding: Optional[Mapping[str, Any]]) -> int:
    branded = parse_hex_color((branding or {}).get("color"))
    if branded is not None:
        return branded
    return THEME_COLORS.get((style or {}).get("theme") or "", DEFAULT_EMBED_COLOR)


def title_emoji(title: str, branding: Optional[Mapping[str, Any]]) -> str:
    return (branding or {}).get("emoji") or HEADER_EMOJIS.get(title.lower(), DEFAULT_HEADER_EMOJI)


def format_body(body: str) -> str:
    return _BLANK_LINES_RE.sub("\n\n", body)


def format_section_header(header: Optional[str]) -> str:
    if not header:
        return ZERO_WIDTH
    return f"{SECTION_ARROW} {header}"


def build_section_value(section: Mapping[str, Any]) -> str:
    value = section.get("content") or ""
    bullets = section.get("bullets") or []
    if bullets:
        value += "\n" + "\n".join(f"{BULLET} {b}" for b in bullets)
    # embed field values may not be empty
    return value or ZERO_WIDTH


def build_styled_embed(
    message: Mapping[str, Any],
    style: Optional[Mapping[str, Any]] = None,
    branding: Optional[Mapping[str, Any]] = None,
) -> discord.Embed:
    """Render a blueprint ``message`` as a themed embed."""
    embed = discord.Embed(color=theme_color(style, branding))

    title = message.get("title")
    if title:
        embed.title = _clip(f"{title_emoji(title, branding)} {title}", MAX_EMBED_TITLE)

    body = message.get("body")
    if body:
        embed.description = _clip(format_body(body), MAX_EMBED_DESCRIPTION)

    for section in (message.get("sections") or [])[:MAX_FIELDS_PER_EMBED]:
        embed.add_field(
            name=_clip(format_section_header(section.get("header")), MAX_FIELD_NAME),
            value=_clip(build_section_value(section), MAX_FIELD_VALUE),
            inline=False,
        )
    return embed
