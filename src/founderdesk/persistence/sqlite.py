"""SQLite-backed key/value store for durable client state."""

from __future__ import annotations

import structlog

from founderdesk.persistence.db import DatabaseManager

log = structlog.get_logger(__name__)

_SELECT = "SELECT value FROM client_state WHERE key = ?"

_UPSERT = """
    INSERT INTO client_state (key, value, updated_at)
    VALUES (?, ?, datetime('now'))
    ON CONFLICT(key) DO UPDATE SET
        value      = excluded.value,
        updated_at = excluded.updated_at
"""

_DELETE = "DELETE FROM client_state WHERE key = ?"


class SqliteKeyValueStore:
    """Durable store over the ``client_state`` table."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get(self, key: str) -> str | None:
        row = await self._db.fetch_one(_SELECT, (key,))
        return row["value"] if row is not None else None

    async def set(self, key: str, value: str) -> None:
        await self._db.write(_UPSERT, (key, value))
        log.debug("client_state_written", key=key)

    async def delete(self, key: str) -> None:
        count = await self._db.write(_DELETE, (key,))
        log.debug("client_state_deleted", key=key, existed=bool(count))
