from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import discord

from .permissions import Grant, merge_grants, to_overwrite
from .safety import with_retry
from .service import ChannelInfo, OverwriteInfo, RoleInfo

log = logging.getLogger("guildsmith.blueprint.discord_service")

REASON = "Guildsmith blueprint apply"

_KIND_BY_CHANNEL_TYPE = {
    discord.ChannelType.text: "text",
    discord.ChannelType.voice: "voice",
    discord.ChannelType.news: "announcement",
    discord.ChannelType.stage_voice: "stage",
    discord.ChannelType.forum: "forum",
    discord.ChannelType.category: "category",
}
_media_type = getattr(discord.ChannelType, "media", None)
if _media_type is not None:
    _KIND_BY_CHANNEL_TYPE[_media_type] = "media"


def _overwrite_names(overwrite: discord.PermissionOverwrite) -> tuple[frozenset, frozenset]:
    allow, deny = overwrite.pair()
    return (
        frozenset(name for name, value in allow if value),
        frozenset(name for name, value in deny if value),
    )


class DiscordGuildService:
    """``GuildService`` backed by a live ``discord.Guild``."""

    def __init__(self, guild: discord.Guild) -> None:
        self.guild = guild
        # roles created during this run are not guaranteed to be in the gateway cache yet
        self._roles: Dict[int, discord.Role] = {}

    @property
    def guild_id(self) -> int:
        return self.guild.id

    @property
    def guild_name(self) -> str:
        return self.guild.name

    @property
    def default_role_id(self) -> int:
        return self.guild.default_role.id

    def _target(self, target_id: int) -> Any:
        if target_id == self.guild.default_role.id:
            return self.guild.default_role
        role = self._roles.get(target_id) or self.guild.get_role(target_id)
        if role is not None:
            return role
        member = self.guild.get_member(target_id)
        if member is not None:
            return member
        raise LookupError(f"Unknown overwrite target {target_id}")

    async def create_role(self, name: str, *, permissions: discord.Permissions, color: Optional[int] = None) -> discord.Role:
        colour = discord.Colour(color) if color is not None else discord.Colour.default()
        role = await with_retry(
            f"create_role({name})",
            self.guild.create_role,
            name=name,
            permissions=permissions,
            colour=colour,
            reason=REASON,
        )
        self._roles[role.id] = role
        return role

    async def create_category(self, name: str) -> discord.CategoryChannel:
        return await with_retry(f"create_category({name})", self.guild.create_category, name=name, reason=REASON)

    async def create_channel(
        self,
        name: str,
        kind: str,
        *,
        category: Any,
        topic: Optional[str] = None,
        default_auto_archive_duration: Optional[int] = None,
    ) -> discord.abc.GuildChannel:
        label = f"create_channel({name})"
        if kind == "voice":
            return await with_retry(label, self.guild.create_voice_channel, name=name, category=category, reason=REASON)
        if kind == "stage":
            return await with_retry(label, self.guild.create_stage_channel, name=name, category=category, reason=REASON)
        if kind == "forum":
            kwargs: Dict[str, Any] = {"name": name, "category": category, "reason": REASON}
            if topic:
                kwargs["topic"] = topic
            if default_auto_archive_duration:
                kwargs["default_auto_archive_duration"] = default_auto_archive_duration
            return await with_retry(label, self.guild.create_forum, **kwargs)

        # text, media and announcement all start as text channels
        kwargs = {"name": name, "category": category, "reason": REASON}
        if topic:
            kwargs["topic"] = topic
        if kind == "announcement":
            kwargs["news"] = True
        return await with_retry(label, self.guild.create_text_channel, **kwargs)

    async def set_permission_overwrites(self, channel: Any, grants: Sequence[Grant]) -> None:
        overwrites = {
            self._target(target_id): to_overwrite(allow, deny)
            for target_id, (allow, deny) in merge_grants(grants).items()
        }
        if not overwrites:
            return
        await with_retry(f"set_overwrites({channel.name})", channel.edit, overwrites=overwrites, reason=REASON)

    async def set_channel_position(self, channel: Any, position: int) -> None:
        await with_retry(f"set_position({channel.name})", channel.edit, position=position, reason=REASON)

    async def _download_avatar(self, url: str) -> Optional[bytes]:
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=15)) as session:
                async with session.get(url) as response:
                    if response.status >= 400:
                        log.warning("Webhook avatar fetch returned %s for %s", response.status, url)
                        return None
                    return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("Webhook avatar fetch failed for %s: %s", url, e)
            return None

    async def create_webhook(self, channel: Any, name: str, avatar: Optional[str] = None) -> discord.Webhook:
        kwargs: Dict[str, Any] = {"name": name, "reason": REASON}
        if avatar:
            data = await self._download_avatar(avatar)
            if data:
                kwargs["avatar"] = data
        return await with_retry(f"create_webhook({channel.name})", channel.create_webhook, **kwargs)

    async def send_embed(self, channel: Any, embed: discord.Embed) -> discord.Message:
        return await with_retry(f"send_embed({channel.name})", channel.send, embed=embed)

    async def send_text(self, channel: Any, content: str) -> discord.Message:
        return await with_retry(f"send_text({channel.name})", channel.send, content)

    def get_channel(self, channel_id: int) -> Any:
        return self.guild.get_channel(channel_id)

    async def fetch_channel(self, channel_id: int) -> Any:
        return await with_retry(f"fetch_channel({channel_id})", self.guild.fetch_channel, channel_id)

    async def list_roles(self) -> List[RoleInfo]:
        return [
            RoleInfo(
                id=r.id,
                name=r.name,
                color=r.colour.value,
                permissions=r.permissions,
                managed=r.managed,
                is_default=r.is_default(),
                position=r.position,
            )
            for r in self.guild.roles
        ]

    async def list_channels(self) -> List[ChannelInfo]:
        infos: List[ChannelInfo] = []
        for ch in sorted(self.guild.channels, key=lambda c: (c.position, c.id)):
            overwrites = []
            for target, overwrite in ch.overwrites.items():
                allow, deny = _overwrite_names(overwrite)
                overwrites.append(OverwriteInfo(target.id, allow, deny))
            infos.append(
                ChannelInfo(
                    id=ch.id,
                    name=ch.name,
                    kind=_KIND_BY_CHANNEL_TYPE.get(ch.type, "text"),
                    category_id=getattr(ch, "category_id", None),
                    position=ch.position,
                    topic=getattr(ch, "topic", None),
                    default_auto_archive_duration=getattr(ch, "default_auto_archive_duration", None),
                    overwrites=tuple(overwrites),
                )
            )
        return infos

    async def list_webhook_names(self, channel_id: int) -> List[str]:
        channel = self.guild.get_channel(channel_id)
        if channel is None or not hasattr(channel, "webhooks"):
            return []
        hooks = await with_retry(f"webhooks({channel.name})", channel.webhooks)
        return [h.name for h in hooks if h.name]
