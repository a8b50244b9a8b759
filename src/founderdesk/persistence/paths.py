"""Path management for the per-user founderdesk state directory."""

from __future__ import annotations

from pathlib import Path

import structlog

log = structlog.get_logger(__name__)

_DB_FILE_NAME = "state.db"
_GITIGNORE_ENTRIES = ("*.db", "*.db-wal", "*.db-shm")


def get_state_dir(state_dir: Path | str | None = None) -> Path:
    """Return the state directory, creating it if missing.

    Defaults to ``Settings.state_dir``.
    """
    if state_dir is None:
        from founderdesk.settings import settings

        state_dir = settings.state_dir
    path = Path(state_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    log.debug("state_dir_resolved", path=str(path))
    return path


def get_db_path(state_dir: Path | str | None = None) -> Path:
    """Return the path to the SQLite state database."""
    return get_state_dir(state_dir) / _DB_FILE_NAME


def ensure_gitignore(state_dir: Path) -> None:
    """Create or update <state_dir>/.gitignore so DB files (and the token in them) stay untracked."""
    gitignore_path = state_dir / ".gitignore"
    existing_lines: list[str] = []

    if gitignore_path.exists():
        existing_lines = gitignore_path.read_text(encoding="utf-8").splitlines()

    missing = [entry for entry in _GITIGNORE_ENTRIES if entry not in existing_lines]
    if not missing:
        return

    lines = existing_lines + missing
    gitignore_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    log.info("gitignore_updated", path=str(gitignore_path), added=missing)
