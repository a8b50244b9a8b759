"""Persistence layer for founderdesk: durable client-local state."""

from __future__ import annotations

from founderdesk.persistence.base import KeyValueStore
from founderdesk.persistence.db import DatabaseManager
from founderdesk.persistence.memory import InMemoryKeyValueStore
from founderdesk.persistence.migrations import run_migrations
from founderdesk.persistence.paths import get_db_path, get_state_dir
from founderdesk.persistence.sqlite import SqliteKeyValueStore

__all__ = [
    "DatabaseManager",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqliteKeyValueStore",
    "get_db_path",
    "get_state_dir",
    "run_migrations",
]
