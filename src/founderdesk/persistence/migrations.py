"""Versioned schema for the client state database."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from founderdesk.persistence.db import DatabaseManager

log = structlog.get_logger(__name__)

_VERSION_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_version (
        version     INTEGER PRIMARY KEY,
        applied_at  TEXT NOT NULL DEFAULT (datetime('now'))
    )
"""

# Ordered (version, statements). Append new steps; never edit an applied one.
MIGRATIONS: list[tuple[int, tuple[str, ...]]] = [
    (1, (
        """
        CREATE TABLE IF NOT EXISTS client_state (
            key         TEXT PRIMARY KEY,
            value       TEXT NOT NULL,
            updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """,
    )),
]

SCHEMA_VERSION = MIGRATIONS[-1][0]


async def current_version(db: DatabaseManager) -> int:
    row = await db.fetch_one("SELECT MAX(version) AS version FROM schema_version")
    if row is None or row["version"] is None:
        return 0
    return int(row["version"])


async def run_migrations(db: DatabaseManager) -> int:
    """Apply every step newer than the recorded version; returns the resulting version."""
    await db.write(_VERSION_TABLE)
    applied = await current_version(db)

    for version, statements in MIGRATIONS:
        if version <= applied:
            continue
        for statement in statements:
            await db.write(statement)
        await db.write("INSERT INTO schema_version (version) VALUES (?)", (version,))
        log.info("state_db_migrated", version=version)
        applied = version

    return applied
