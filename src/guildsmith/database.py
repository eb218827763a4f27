from __future__ import annotations

import logging
from typing import Iterable, Protocol

import aiosqlite

log = logging.getLogger("guildsmith.database")


class Initializable(Protocol):
    async def init(self) -> None: ...


async def initialize_database(sqlite_path: str, stores: Iterable[Initializable]) -> None:
    """Apply SQLite pragmas and create every store's tables."""
    try:
        async with aiosqlite.connect(sqlite_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("PRAGMA synchronous=NORMAL")
            await db.commit()
        log.info("Applied SQLite optimizations")

        for store in stores:
            await store.init()
            log.info(f"Initialized {store.__class__.__name__}")

        log.info("Database initialization completed")

    except Exception as e:
        log.error(f"Failed to initialize database: {e}")
        raise
