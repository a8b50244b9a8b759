"""Protocol for pluggable client-state storage backends."""

from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """Durable client-local storage: read, write and clear a string under a key."""

    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...
