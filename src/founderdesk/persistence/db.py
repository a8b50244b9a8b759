"""Async SQLite handle for the client state database."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite
import structlog

log = structlog.get_logger(__name__)


class DatabaseManager:
    """One aiosqlite connection to ``state.db``, in WAL mode, migrated on open.

    Usage::

        async with DatabaseManager(path) as db:
            row = await db.fetch_one("SELECT value FROM client_state WHERE key = ?", ("token",))
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        if db_path is None:
            from founderdesk.persistence.paths import get_db_path
            db_path = get_db_path()
        self._db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def path(self) -> Path:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"State database {self._db_path} is not initialized; call initialize() first")
        return self._conn

    async def initialize(self) -> None:
        """Create the directory, open the connection and bring the schema up to date."""
        from founderdesk.persistence.migrations import run_migrations
        from founderdesk.persistence.paths import ensure_gitignore

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        ensure_gitignore(self._db_path.parent)

        conn = await aiosqlite.connect(self._db_path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode = WAL")
        self._conn = conn

        await run_migrations(self)
        log.info("state_db_opened", path=str(self._db_path))

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        log.debug("state_db_closed", path=str(self._db_path))

    async def __aenter__(self) -> DatabaseManager:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        async with self._connection.execute(sql, params) as cursor:
            return [dict(row) for row in await cursor.fetchall()]

    async def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        async with self._connection.execute(sql, params) as cursor:
            row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def write(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        """Run one statement and commit. Returns the affected row count (0 for DDL)."""
        conn = self._connection
        async with conn.execute(sql, params) as cursor:
            affected = max(cursor.rowcount, 0)
        await conn.commit()
        return affected
