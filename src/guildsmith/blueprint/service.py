"""
Guild Service contract.

The builder never talks to discord.py directly; it goes through an object
satisfying ``GuildService``. ``DiscordGuildService`` is the production
implementation, ``guildsmith.testing.fakes.FakeGuildService`` the in-memory one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

import discord

from .permissions import Grant


@dataclass(frozen=True)
class OverwriteInfo:
    target_id: int
    allow: frozenset = frozenset()
    deny: frozenset = frozenset()


@dataclass(frozen=True)
class RoleInfo:
    id: int
    name: str
    color: int = 0
    permissions: discord.Permissions = field(default_factory=discord.Permissions.none)
    managed: bool = False
    is_default: bool = False
    position: int = 0


@dataclass(frozen=True)
class ChannelInfo:
    id: int
    name: str
    kind: str  # text/voice/announcement/media/stage/forum/category
    category_id: Optional[int] = None
    position: int = 0
    topic: Optional[str] = None
    default_auto_archive_duration: Optional[int] = None
    overwrites: Sequence[OverwriteInfo] = ()

    @property
    def is_category(self) -> bool:
        return self.kind == "category"


@runtime_checkable
class GuildService(Protocol):
    """Capabilities the blueprint builder needs from a live guild."""

    @property
    def guild_id(self) -> int: ...

    @property
    def guild_name(self) -> str: ...

    @property
    def default_role_id(self) -> int: ...

    async def create_role(self, name: str, *, permissions: discord.Permissions, color: Optional[int] = None) -> Any: ...

    async def create_category(self, name: str) -> Any: ...

    async def create_channel(
        self,
        name: str,
        kind: str,
        *,
        category: Any,
        topic: Optional[str] = None,
        default_auto_archive_duration: Optional[int] = None,
    ) -> Any: ...

    async def set_permission_overwrites(self, channel: Any, grants: Sequence[Grant]) -> None: ...

    async def set_channel_position(self, channel: Any, position: int) -> None: ...

    async def create_webhook(self, channel: Any, name: str, avatar: Optional[str] = None) -> Any: ...

    async def send_embed(self, channel: Any, embed: discord.Embed) -> Any: ...

    async def send_text(self, channel: Any, content: str) -> Any: ...

    def get_channel(self, channel_id: int) -> Any: ...

    async def fetch_channel(self, channel_id: int) -> Any: ...

    async def list_roles(self) -> List[RoleInfo]: ...

    async def list_channels(self) -> List[ChannelInfo]: ...

    async def list_webhook_names(self, channel_id: int) -> List[str]: ...
