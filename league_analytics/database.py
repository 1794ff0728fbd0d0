import asyncio
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional

import aiosqlite

from .cache import AnalysisCache, is_fresh
from .config import DATABASE_URL, ANALYSIS_CACHE_TTL_SECONDS


async def get_db_connection(database_url: str = DATABASE_URL):
    db = await aiosqlite.connect(database_url)
    db.row_factory = aiosqlite.Row
    return db


async def create_tables(database_url: str = DATABASE_URL):
    async with aiosqlite.connect(database_url) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS analysis_cache (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                cache_key TEXT UNIQUE NOT NULL,
                data TEXT NOT NULL,
                cached_at TEXT NOT NULL
            )
        """)
        await db.commit()


class SqliteAnalysisCache(AnalysisCache):
    def __init__(self, database_url: str = DATABASE_URL, ttl_seconds: int = ANALYSIS_CACHE_TTL_SECONDS):
        self.database_url = database_url
        self.ttl_seconds = ttl_seconds

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        db = await get_db_connection(self.database_url)
        try:
            cursor = await db.execute("SELECT data, cached_at FROM analysis_cache WHERE cache_key = ?", (key,))
            row = await cursor.fetchone()
        finally:
            await db.close()

        if not row:
            return None
        if not is_fresh(datetime.fromisoformat(row["cached_at"]), self.ttl_seconds):
            return None
        return json.loads(row["data"])

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        db = await get_db_connection(self.database_url)
        try:
            await db.execute(
                "INSERT OR REPLACE INTO analysis_cache (cache_key, data, cached_at) VALUES (?, ?, ?)",
                (key, json.dumps(value), datetime.now(timezone.utc).isoformat()),
            )
            await db.commit()
        finally:
            await db.close()


if __name__ == "__main__":
    asyncio.run(create_tables())
