from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiosqlite

log = logging.getLogger("guildsmith.build_store")


@dataclass(frozen=True)
class BuildRecord:
    guild_id: int
    metrics: Dict[str, Any]
    timestamp: str


@dataclass(frozen=True)
class UsageEntry:
    guild_id: int
    timestamp: str
    metrics: Dict[str, Any]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class BuildStore:
    """SQLite-backed blueprint and build-record persistence.

    One current blueprint and one build record per guild (overwritten on every
    build), plus an append-only usage log for analytics.
    """

    def __init__(self, sqlite_path: str) -> None:
        self._path = sqlite_path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS blueprints (
                    guild_id INTEGER PRIMARY KEY,
                    blueprint_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS builds (
                    guild_id INTEGER PRIMARY KEY,
                    metrics_json TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS usage_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    guild_id INTEGER NOT NULL,
                    timestamp TEXT NOT NULL,
                    metrics_json TEXT NOT NULL
                )
                """
            )
            await db.execute("CREATE INDEX IF NOT EXISTS idx_usage_log_guild ON usage_log (guild_id, id)")
            await db.commit()
        log.info("BuildStore initialized at %s", self._path)

    async def save_blueprint(self, guild_id: int, blueprint: Dict[str, Any]) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                INSERT INTO blueprints (guild_id, blueprint_json, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(guild_id) DO UPDATE SET
                    blueprint_json=excluded.blueprint_json,
                    updated_at=excluded.updated_at
                """,
                (int(guild_id), json.dumps(blueprint, ensure_ascii=False), utc_timestamp()),
            )
            await db.commit()

    async def get_blueprint(self, guild_id: int) -> Optional[Dict[str, Any]]:
        async with aiosqlite.connect(self._path) as db:
            async with db.execute("SELECT blueprint_json FROM blueprints WHERE guild_id=?", (int(guild_id),)) as cur:
                row = await cur.fetchone()
        if not row:
            return None
        return json.loads(row[0])

    async def save_build(self, guild_id: int, metrics: Dict[str, Any], timestamp: Optional[str] = None) -> BuildRecord:
        record = BuildRecord(int(guild_id), dict(metrics), timestamp or utc_timestamp())
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                INSERT INTO builds (guild_id, metrics_json, timestamp)
                VALUES (?, ?, ?)
                ON CONFLICT(guild_id) DO UPDATE SET
                    metrics_json=excluded.metrics_json,
                    timestamp=excluded.timestamp
                """,
                (record.guild_id, json.dumps(record.metrics), record.timestamp),
            )
            await db.commit()
        return record

    async def get_build(self, guild_id: int) -> Optional[BuildRecord]:
        async with aiosqlite.connect(self._path) as db:
            async with db.execute("SELECT metrics_json, timestamp FROM builds WHERE guild_id=?", (int(guild_id),)) as cur:
                row = await cur.fetchone()
        if not row:
            return None
        return BuildRecord(int(guild_id), json.loads(row[0]), str(row[1]))

    async def append_usage(self, guild_id: int, metrics: Dict[str, Any], timestamp: Optional[str] = None) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                "INSERT INTO usage_log (guild_id, timestamp, metrics_json) VALUES (?, ?, ?)",
                (int(guild_id), timestamp or utc_timestamp(), json.dumps(metrics)),
            )
            await db.commit()

    async def usage_for(self, guild_id: int, limit: int = 50) -> List[UsageEntry]:
        async with aiosqlite.connect(self._path) as db:
            async with db.execute(
                "SELECT timestamp, metrics_json FROM usage_log WHERE guild_id=? ORDER BY id DESC LIMIT ?",
                (int(guild_id), int(limit)),
            ) as cur:
                rows = await cur.fetchall()
        return [UsageEntry(int(guild_id), str(r[0]), json.loads(r[1])) for r in rows]
