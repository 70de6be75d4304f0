# src/cache/sqlite_store.py — v1
"""SQLite-based result cache (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3. Each namespace is a partition of one table; every
write is committed before ``put`` returns.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from examextractor.cache.base_cache_store import BaseResultCache
from examextractor.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS result_cache (
    namespace TEXT NOT NULL,
    fingerprint TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (namespace, fingerprint)
);
"""


class SqliteResultCache(BaseResultCache):
    """SQLite-backed result cache."""

    def __init__(self, db_path: Path | str, namespace: str) -> None:
        super().__init__(namespace)
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        return self._conn

    async def _load_all(self) -> dict[str, CacheEntry]:
        cursor = self.conn.execute(
            "SELECT fingerprint, data FROM result_cache WHERE namespace = ?",
            (self.namespace,),
        )
        entries: dict[str, CacheEntry] = {}
        for fingerprint, data in cursor.fetchall():
            try:
                entries[fingerprint] = CacheEntry.model_validate_json(data)
            except ValidationError as e:
                logger.warning("Skipping unreadable cache row %s: %s", fingerprint, e)
        return entries

    async def _write(self, entry: CacheEntry) -> None:
        self.conn.execute(
            """INSERT OR REPLACE INTO result_cache
               (namespace, fingerprint, data, created_at)
               VALUES (?, ?, ?, ?)""",
            (
                self.namespace,
                entry.fingerprint,
                entry.model_dump_json(),
                entry.created_at.isoformat(),
            ),
        )
        self.conn.commit()

    async def _erase(self, fingerprint: str) -> None:
        self.conn.execute(
            "DELETE FROM result_cache WHERE namespace = ? AND fingerprint = ?",
            (self.namespace, fingerprint),
        )
        self.conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        await super().close()
        if self._conn is not None:
            self._conn.close()
            self._conn = None
