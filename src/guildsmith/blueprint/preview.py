from __future__ import annotations

from typing import Any, Mapping


def build_preview(blueprint: Mapping[str, Any]) -> str:
    """Human-readable outline of a blueprint, wrapped in a code block."""
    style = blueprint.get("style") or {}
    lines = [
        f"Theme: {style.get('theme') or '-'}",
        f"Emoji Prefix: {style.get('emojiPrefix') or '-'}",
        "Roles:",
    ]
    for role in blueprint.get("roles") or []:
        perms = role.get("permissions")
        suffix = f" [{','.join(perms)}]" if perms else ""
        lines.append(f"  - {role.get('name')}{suffix}")

    lines.append("Categories & Channels:")
    for category, channels in (blueprint.get("categories") or {}).items():
        lines.append(f"  * {category}")
        for channel in channels or []:
            private = " (private)" if channel.get("private") else ""
            lines.append(f"     - {channel.get('name')}{private}")

    return "```\n" + "\n".join(lines) + "\n```"
