from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

import discord

from ..blueprint.permissions import Grant, merge_grants
from ..blueprint.service import ChannelInfo, OverwriteInfo, RoleInfo


class FakeServiceError(Exception):
    """Raised by the fake guild service for injected failures."""


@dataclass
class FakeRole:
    id: int
    name: str
    permissions: discord.Permissions = field(default_factory=discord.Permissions.none)
    color: int = 0
    managed: bool = False
    position: int = 0


@dataclass
class FakeChannel:
    id: int
    name: str
    kind: str
    category_id: Optional[int] = None
    topic: Optional[str] = None
    default_auto_archive_duration: Optional[int] = None
    position: int = 0
    overwrites: Dict[int, Tuple[frozenset, frozenset]] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"<FakeChannel id={self.id} name={self.name} kind={self.kind}>"


@dataclass
class FakeWebhook:
    id: int
    name: str
    channel_id: int
    avatar: Optional[str] = None


class FakeGuildService:
    """In-memory guild implementing the ``GuildService`` protocol.

    ``fail_names`` holds role/category/channel names (as passed to the create
    call) whose creation raises ``FakeServiceError``. ``fail_calls`` narrows a
    failure to one ``(operation, name)`` pair. Every call is appended to
    ``calls`` as ``(operation, name_or_id)``.
    """

    def __init__(
        self,
        guild_id: int = 4242,
        guild_name: str = "Test Guild",
        *,
        fail_names: Optional[Set[str]] = None,
        fail_operations: Optional[Set[str]] = None,
        fail_calls: Optional[Set[Tuple[str, Any]]] = None,
        cache_channels: bool = True,
    ) -> None:
        self._guild_id = guild_id
        self._guild_name = guild_name
        self._ids = itertools.count(guild_id + 1)
        self.fail_names = set(fail_names or ())
        self.fail_operations = set(fail_operations or ())
        self.fail_calls = set(fail_calls or ())
        self.cache_channels = cache_channels

        self.roles: List[FakeRole] = [FakeRole(id=guild_id, name="@everyone")]
        self.channels: List[FakeChannel] = []
        self.webhooks: List[FakeWebhook] = []
        self.embeds: List[Tuple[int, discord.Embed]] = []
        self.texts: List[Tuple[int, str]] = []
        self.calls: List[Tuple[str, Any]] = []

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def guild_name(self) -> str:
        return self._guild_name

    @property
    def default_role_id(self) -> int:
        # Discord's @everyone role shares the guild id
        return self._guild_id

    def _check(self, operation: str, name: Any) -> None:
        self.calls.append((operation, name))
        if operation in self.fail_operations or name in self.fail_names or (operation, name) in self.fail_calls:
            raise FakeServiceError(f"{operation} failed for {name}")

    def channel_named(self, name: str) -> Optional[FakeChannel]:
        """First non-category channel called ``name``."""
        return next((c for c in self.channels if c.name == name and c.kind != "category"), None)

    def category_named(self, name: str) -> Optional[FakeChannel]:
        return next((c for c in self.channels if c.name == name and c.kind == "category"), None)

    def role_named(self, name: str) -> Optional[FakeRole]:
        return next((r for r in self.roles if r.name == name), None)

    async def create_role(self, name: str, *, permissions: discord.Permissions, color: Optional[int] = None) -> FakeRole:
        self._check("create_role", name)
        return self._insert_role(FakeRole(id=next(self._ids), name=name, permissions=permissions, color=color or 0))

    def add_managed_role(self, name: str) -> FakeRole:
        return self._insert_role(FakeRole(id=next(self._ids), name=name, managed=True))

    def _insert_role(self, role: FakeRole) -> FakeRole:
        # like Discord, a new role lands just above @everyone
        for existing in self.roles[1:]:
            existing.position += 1
        role.position = 1
        self.roles.append(role)
        return role

    async def create_category(self, name: str) -> FakeChannel:
        self._check("create_category", name)
        category = FakeChannel(id=next(self._ids), name=name, kind="category", position=len(self.channels))
        self.channels.append(category)
        return category

    async def create_channel(
        self,
        name: str,
        kind: str,
        *,
        category: Any,
        topic: Optional[str] = None,
        default_auto_archive_duration: Optional[int] = None,
    ) -> FakeChannel:
        self._check("create_channel", name)
        channel = FakeChannel(
            id=next(self._ids),
            name=name,
            kind=kind,
            category_id=getattr(category, "id", None),
            topic=topic,
            default_auto_archive_duration=default_auto_archive_duration,
            position=len(self.channels),
        )
        self.channels.append(channel)
        return channel

    async def set_permission_overwrites(self, channel: Any, grants: Sequence[Grant]) -> None:
        self._check("set_permission_overwrites", channel.name)
        channel.overwrites = merge_grants(grants)

    async def set_channel_position(self, channel: Any, position: int) -> None:
        self._check("set_channel_position", channel.name)
        channel.position = position

    async def create_webhook(self, channel: Any, name: str, avatar: Optional[str] = None) -> FakeWebhook:
        self._check("create_webhook", name)
        hook = FakeWebhook(id=next(self._ids), name=name, channel_id=channel.id, avatar=avatar)
        self.webhooks.append(hook)
        return hook

    async def send_embed(self, channel: Any, embed: discord.Embed) -> None:
        self._check("send_embed", channel.name)
        self.embeds.append((channel.id, embed))

    async def send_text(self, channel: Any, content: str) -> None:
        self._check("send_text", channel.name)
        self.texts.append((channel.id, content))

    def get_channel(self, channel_id: int) -> Optional[FakeChannel]:
        if not self.cache_channels:
            return None
        return next((c for c in self.channels if c.id == channel_id), None)

    async def fetch_channel(self, channel_id: int) -> FakeChannel:
        self._check("fetch_channel", channel_id)
        channel = next((c for c in self.channels if c.id == channel_id), None)
        if channel is None:
            raise FakeServiceError(f"unknown channel {channel_id}")
        return channel

    async def list_roles(self) -> List[RoleInfo]:
        return [
            RoleInfo(
                id=r.id,
                name=r.name,
                color=r.color,
                permissions=r.permissions,
                managed=r.managed,
                is_default=r.id == self._guild_id,
                position=r.position,
            )
            for r in self.roles
        ]

    async def list_channels(self) -> List[ChannelInfo]:
        return [
            ChannelInfo(
                id=c.id,
                name=c.name,
                kind=c.kind,
                category_id=c.category_id,
                position=c.position,
                topic=c.topic,
                default_auto_archive_duration=c.default_auto_archive_duration,
                overwrites=tuple(OverwriteInfo(tid, allow, deny) for tid, (allow, deny) in c.overwrites.items()),
            )
            for c in self.channels
        ]

    async def list_webhook_names(self, channel_id: int) -> List[str]:
        return [h.name for h in self.webhooks if h.channel_id == channel_id]


class FakeNotifier:
    """Collects progress messages; ``fail`` makes every send raise."""

    def __init__(self, fail: bool = False) -> None:
        self.messages: List[str] = []
        self.fail = fail

    async def send(self, text: str) -> None:
        if self.fail:
            raise FakeServiceError("notifier unavailable")
        self.messages.append(text)


class MemoryKeyValueStore:
    """Dict-backed ``KeyValueStore`` without expiry."""

    def __init__(self) -> None:
        self.data: Dict[Any, Any] = {}

    def get(self, key: Any) -> Any:
        return self.data.get(key)

    def set(self, key: Any, value: Any, ttl_seconds: Optional[int] = None) -> None:
        self.data[key] = value

    def delete(self, key: Any) -> None:
        self.data.pop(key, None)


class FakeBuildStore:
    """In-memory stand-in for ``BuildStore`` used by orchestrator tests."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.blueprints: Dict[int, Dict[str, Any]] = {}
        self.builds: Dict[int, Dict[str, Any]] = {}
        self.usage: List[Tuple[int, Dict[str, Any]]] = []

    async def save_blueprint(self, guild_id: int, blueprint: Dict[str, Any]) -> None:
        if self.fail:
            raise FakeServiceError("storage offline")
        self.blueprints[guild_id] = blueprint

    async def save_build(self, guild_id: int, metrics: Dict[str, Any], timestamp: Optional[str] = None) -> None:
        if self.fail:
            raise FakeServiceError("storage offline")
        self.builds[guild_id] = metrics

    async def append_usage(self, guild_id: int, metrics: Dict[str, Any], timestamp: Optional[str] = None) -> None:
        if self.fail:
            raise FakeServiceError("storage offline")
        self.usage.append((guild_id, metrics))
