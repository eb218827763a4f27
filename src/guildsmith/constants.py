from __future__ import annotations

import re
from typing import Final

# Discord limits
MAX_MESSAGE_LENGTH: Final[int] = 2000
MAX_EMBED_TITLE: Final[int] = 256
MAX_EMBED_DESCRIPTION: Final[int] = 4096
MAX_FIELD_NAME: Final[int] = 256
MAX_FIELD_VALUE: Final[int] = 1024
MAX_FIELDS_PER_EMBED: Final[int] = 25

# Channel naming
CHANNEL_SEPARATOR: Final[str] = "│"
ZERO_WIDTH: Final[str] = "​"
SECTION_ARROW: Final[str] = "➤"
BULLET: Final[str] = "•"

CHANNEL_TYPES: Final[tuple[str, ...]] = ("text", "voice", "announcement", "media", "stage", "forum")
AUTO_ARCHIVE_DURATIONS: Final[tuple[int, ...]] = (60, 1440, 4320, 10080)

# Embed colors
DEFAULT_EMBED_COLOR: Final[int] = 0x23272A
THEME_COLORS = {
    "neon-gold": 0xFFD700,
    "streamer-dark": 0x9146FF,
    "streamer-purple": 0x9146FF,
    "dark-cyberpunk": 0x00FFF7,
    "pastel-cozy": 0xF8C8DC,
    "minimal-clean": 0xFFFFFF,
}

HEADER_EMOJIS = {
    "rules": "💡",
    "faq": "📘",
    "about": "🧩",
    "welcome": "👋",
}
DEFAULT_HEADER_EMOJI: Final[str] = "💬"

# Role-name heuristics. Every place that recognises a role by name
# (role inference, presets, convenience grants) reads these.
ROLE_PATTERNS = {
    "mod": re.compile(r"mod|moderator", re.IGNORECASE),
    "verified": re.compile(r"verified", re.IGNORECASE),
    "staff": re.compile(r"admin|mod|staff|moderator", re.IGNORECASE),
    "announcer": re.compile(r"admin|mod|moderator", re.IGNORECASE),
    "admin": re.compile(r"admin", re.IGNORECASE),
}

ADMIN_ROLE_NAMES = frozenset({"admin"})
MODERATOR_ROLE_NAMES = frozenset({"moderator", "mod"})
ADMIN_DEFAULT_PERMISSIONS = ("Administrator",)
MODERATOR_DEFAULT_PERMISSIONS = ("ManageMessages", "EmbedLinks", "AttachFiles", "TimeoutMembers", "ManageThreads")

# Blueprint permission names -> discord.Permissions attribute names
PERMISSION_NAMES = {
    "Administrator": "administrator",
    "ManageMessages": "manage_messages",
    "EmbedLinks": "embed_links",
    "AttachFiles": "attach_files",
    "TimeoutMembers": "moderate_members",
    "ManageChannels": "manage_channels",
    "ViewChannel": "view_channel",
    "SendMessages": "send_messages",
    "ReadMessageHistory": "read_message_history",
    "ManageThreads": "manage_threads",
    "CreatePublicThreads": "create_public_threads",
    "CreatePrivateThreads": "create_private_threads",
    "ManageWebhooks": "manage_webhooks",
}

# Progress / notices
GENERAL_NOTICE = "✨ Your server was built by Guildsmith. Use /setup run to customize or rerun."
TEMPLATE_NAME_RE = re.compile(r"^[a-z0-9_-]{2,32}$", re.IGNORECASE)
