from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from .ai.gateway import AIGateway
from .config import Settings
from .database import initialize_database
from .services.build_store import BuildStore
from .services.cache import TTLCache
from .services.cooldowns import CooldownTracker
from .services.guild_config_store import GuildConfigStore
from .services.template_store import TemplateStore

log = logging.getLogger("guildsmith.bot")


class _CommandSyncManager:
    def __init__(self, bot: "GuildsmithBot") -> None:
        self.bot = bot
        self._lock = asyncio.Lock()

    async def sync_startup(self) -> None:
        if self.bot.settings.sync_guild_id:
            await self.sync_guild(self.bot.settings.sync_guild_id)
        else:
            await self.sync_global()

    async def sync_global(self) -> None:
        async with self._lock:
            await self.bot.tree.sync()
            log.info("Commands synced globally")
            self._log_tree()

    async def sync_guild(self, guild_id: int) -> None:
        async with self._lock:
            guild = discord.Object(id=guild_id)
            self.bot.tree.copy_global_to(guild=guild)
            await self.bot.tree.sync(guild=guild)
            log.info("Commands synced to guild %d", guild_id)
            self._log_tree()

    def _log_tree(self) -> None:
        cmds = self.bot.tree.get_commands()
        log.info("Tree commands loaded: %d", len(cmds))
        for c in cmds:
            log.info(" - /%s", c.name)


class GuildsmithBot(commands.Bot):
    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.members = True
        # interview answers are read from DMs
        intents.dm_messages = True
        intents.message_content = True

        log.info("INTENTS: guilds=%s members=%s message_content=%s", intents.guilds, intents.members, intents.message_content)

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            allowed_mentions=discord.AllowedMentions(everyone=False, roles=False, users=True),
            help_command=None,
        )

        self.settings = settings

        self.build_store = BuildStore(settings.sqlite_path)
        self.template_store = TemplateStore(settings.sqlite_path)
        self.guild_config_store = GuildConfigStore(settings.sqlite_path, settings.cache_default_ttl_seconds)

        self.server_cooldowns = CooldownTracker(settings.server_cooldown_seconds, TTLCache(settings.server_cooldown_seconds))
        self.user_cooldowns = CooldownTracker(settings.user_cooldown_seconds, TTLCache(settings.user_cooldown_seconds))

        self.ai_gateway = AIGateway(
            settings.ai_gateway_url,
            settings.ai_gateway_key,
            model=settings.ai_model,
            max_tokens=settings.ai_max_tokens,
        )
        self._sync_mgr = _CommandSyncManager(self)

    async def setup_hook(self) -> None:
        await initialize_database(
            self.settings.sqlite_path,
            [self.build_store, self.template_store, self.guild_config_store],
        )

        if not self.ai_gateway.configured:
            log.warning("AI gateway key or URL missing; /setup run will not be able to generate blueprints")

        await self.load_extension("guildsmith.cogs.setup")
        log.info("Loaded cog: guildsmith.cogs.setup")

        try:
            await self._sync_mgr.sync_startup()
        except discord.HTTPException as e:
            log.error("Command sync failed: %s", e)

    async def on_ready(self) -> None:
        log.info("Logged in as %s (id=%s) in %d guild(s)", self.user, getattr(self.user, "id", "?"), len(self.guilds))
