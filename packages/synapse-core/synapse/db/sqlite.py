"""
SQLite storage adapter using aiosqlite.

Values live in a single `kv_store` table keyed by name. The database file and
its parent directories are created on first connect.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, List

import aiosqlite

from synapse.db.interface import StorageAdapter, StorageError

logger = logging.getLogger(__name__)


class SQLiteAdapter(StorageAdapter):
    """
    SQLite key-value adapter.

    Uses aiosqlite for async database operations.
    Automatically creates the database file and parent directories.
    """

    def __init__(self, db_path: str = "~/.synapse/synapse.db"):
        """
        Initialize SQLite adapter.

        Args:
            db_path: Path to SQLite database file.
                    Supports ~ expansion for home directory.
        """
        self.db_path = Path(db_path).expanduser()
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Initialize database connection and create file if needed."""
        if self._conn is not None:
            return

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Connect (creates file if doesn't exist)
        self._conn = await aiosqlite.connect(str(self.db_path))

        # Use WAL mode for better concurrent access
        await self._conn.execute("PRAGMA journal_mode = WAL")

        # Row factory to return dicts
        self._conn.row_factory = aiosqlite.Row

        await self.ensure_schema()

        logger.info(f"SQLite database connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite connection closed")

    async def _get_conn(self) -> aiosqlite.Connection:
        """Get or create connection."""
        if self._conn is None:
            await self.connect()
        return self._conn

    async def ensure_schema(self) -> None:
        """Create the key-value table if missing."""
        await self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        await self._conn.commit()

    async def get(self, key: str) -> Optional[str]:
        """Fetch the value for a key."""
        conn = await self._get_conn()
        try:
            cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"Could not read key {key}: {e}") from e

        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        """Upsert the value for a key."""
        conn = await self._get_conn()
        try:
            await conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Could not write key {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        """Delete a key, returning whether a row was removed."""
        conn = await self._get_conn()
        try:
            cursor = await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Could not delete key {key}: {e}") from e

        return cursor.rowcount > 0

    async def keys(self) -> List[str]:
        """List stored keys in name order."""
        conn = await self._get_conn()
        cursor = await conn.execute("SELECT key FROM kv_store ORDER BY key")
        rows = await cursor.fetchall()
        return [row["key"] for row in rows]

    @property
    def storage_type(self) -> str:
        return "sqlite"
