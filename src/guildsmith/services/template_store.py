from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import aiosqlite

from ..constants import TEMPLATE_NAME_RE
from .build_store import utc_timestamp


class TemplateStore:
    """Named blueprint templates shared across guilds."""

    def __init__(self, sqlite_path: str) -> None:
        self._path = sqlite_path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS templates (
                    name TEXT PRIMARY KEY,
                    blueprint_json TEXT NOT NULL,
                    created_by INTEGER NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.commit()

    @staticmethod
    def is_valid_name(name: str) -> bool:
        return bool(name) and TEMPLATE_NAME_RE.match(name) is not None

    async def save(self, name: str, blueprint: Dict[str, Any], created_by: Optional[int] = None) -> None:
        if not self.is_valid_name(name):
            raise ValueError("Template name must be 2-32 chars (alphanumeric, dash, underscore).")
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                INSERT INTO templates (name, blueprint_json, created_by, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    blueprint_json=excluded.blueprint_json,
                    created_by=excluded.created_by,
                    updated_at=excluded.updated_at
                """,
                (name.lower(), json.dumps(blueprint, ensure_ascii=False), created_by, utc_timestamp()),
            )
            await db.commit()

    async def get(self, name: str) -> Optional[Dict[str, Any]]:
        async with aiosqlite.connect(self._path) as db:
            async with db.execute("SELECT blueprint_json FROM templates WHERE name=?", (name.lower(),)) as cur:
                row = await cur.fetchone()
        return json.loads(row[0]) if row else None

    async def list_names(self) -> List[str]:
        async with aiosqlite.connect(self._path) as db:
            async with db.execute("SELECT name FROM templates ORDER BY name") as cur:
                rows = await cur.fetchall()
        return [str(r[0]) for r in rows]
