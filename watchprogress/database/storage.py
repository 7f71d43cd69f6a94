import json
from typing import Any, Dict, List, Optional, Protocol

import aiosqlite

from ..config import DB_PATH
from ..utils.logger import get_logger

logger = get_logger(__name__)


class KeyValueStorage(Protocol):
    """Flat key-value namespace with per-key atomic reads and writes. No cross-key transactions."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def keys(self, prefix: str = "") -> List[str]:
        ...


class MemoryStorage:
    """Process-local storage, mainly for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def keys(self, prefix: str = "") -> List[str]:
        return [k for k in list(self._data) if k.startswith(prefix)]

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)


class SqliteStorage:
    """Durable storage on a single sqlite table. Values are stored JSON-encoded."""

    def __init__(self, db_path: str = str(DB_PATH)):
        self.db_path = db_path
        logger.debug(f"SqliteStorage initialized with path: {self.db_path}")

    async def initialize(self):
        logger.info("Initializing progress database...")
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await db.commit()

    async def get(self, key: str) -> Optional[Any]:
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT value FROM kv_store WHERE key = ?", (key,)) as cursor:
                row = await cursor.fetchone()
                if row is None:
                    return None
                return json.loads(row[0])

    async def set(self, key: str, value: Any) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO kv_store (key, value, updated_at)
                   VALUES (?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = excluded.updated_at""",
                (key, json.dumps(value))
            )
            await db.commit()

    async def delete(self, key: str) -> bool:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0

    async def keys(self, prefix: str = "") -> List[str]:
        # substr instead of LIKE: keys are full of underscores, which LIKE treats as wildcards
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT key FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix)
            ) as cursor:
                rows = await cursor.fetchall()
                return [row[0] for row in rows]
