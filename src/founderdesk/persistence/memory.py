"""In-memory key/value store for testing."""

from __future__ import annotations


class InMemoryKeyValueStore:
    """Simple in-memory store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of everything currently stored."""
        return dict(self._values)
