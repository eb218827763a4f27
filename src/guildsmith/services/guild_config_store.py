from __future__ import annotations

import json
import logging
from typing import Any, Dict

import aiosqlite

from .cache import TTLCache

log = logging.getLogger("guildsmith.guild_config_store")


class GuildConfigStore:
    """Free-form per-guild JSON config with a read-through, write-through cache.

    Keys in use: ``last_blueprint``, ``last_export``, ``imported_at``,
    ``last_reapply``, ``last_metrics``. Concurrent writers for one guild are
    last-writer-wins.
    """

    def __init__(self, sqlite_path: str, cache_ttl_seconds: int = 3600) -> None:
        self._path = sqlite_path
        self._cache: TTLCache[int, Dict[str, Any]] = TTLCache(default_ttl_seconds=cache_ttl_seconds)

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS guild_config (
                    guild_id INTEGER PRIMARY KEY,
                    config_json TEXT NOT NULL DEFAULT '{}'
                )
                """
            )
            await db.commit()
        log.info("GuildConfigStore initialized at %s", self._path)

    async def get(self, guild_id: int) -> Dict[str, Any]:
        cached = self._cache.get(int(guild_id))
        if cached is not None:
            return dict(cached)

        async with aiosqlite.connect(self._path) as db:
            async with db.execute("SELECT config_json FROM guild_config WHERE guild_id=?", (int(guild_id),)) as cur:
                row = await cur.fetchone()

        data: Dict[str, Any] = {}
        if row:
            try:
                data = json.loads(row[0]) or {}
            except ValueError as e:
                log.warning("Config parse failed for guild %s: %s", guild_id, e)
        self._cache.set(int(guild_id), data)
        return dict(data)

    async def save(self, guild_id: int, data: Dict[str, Any]) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                INSERT INTO guild_config (guild_id, config_json) VALUES (?, ?)
                ON CONFLICT(guild_id) DO UPDATE SET config_json=excluded.config_json
                """,
                (int(guild_id), json.dumps(data, ensure_ascii=False)),
            )
            await db.commit()
        self._cache.set(int(guild_id), dict(data))

    async def update(self, guild_id: int, **changes: Any) -> Dict[str, Any]:
        data = await self.get(guild_id)
        data.update(changes)
        await self.save(guild_id, data)
        return data
