from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

import discord

from ..constants import MAX_MESSAGE_LENGTH

log = logging.getLogger("guildsmith.progress")


@runtime_checkable
class Notifier(Protocol):
    """One-way progress channel to whoever requested a build."""

    async def send(self, text: str) -> None: ...


def truncate_message(content: str, max_length: int = MAX_MESSAGE_LENGTH - 100) -> str:
    if len(content) <= max_length:
        return content
    return content[:max_length] + "\n\n... (truncated)"


async def send_progress(notifier: Optional[Notifier], text: str) -> None:
    """Best-effort progress message; failures are logged and dropped."""
    if notifier is None:
        return
    try:
        await notifier.send(truncate_message(text))
    except Exception as e:
        log.warning("Progress message failed: %s", e)


class DMNotifier:
    """Sends progress as direct messages to a Discord user."""

    def __init__(self, user: discord.abc.User) -> None:
        self.user = user
        self.dm_failed = False

    async def send(self, text: str) -> None:
        if self.dm_failed:
            return
        try:
            await self.user.send(text)
        except discord.Forbidden:
            log.warning("Cannot DM user %s, progress messages disabled", self.user.id)
            self.dm_failed = True
