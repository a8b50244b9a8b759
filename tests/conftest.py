"""Shared test fixtures: settings, storage, and a console wired to the in-memory backend."""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio

# Make _helpers and fake_backend importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _helpers import (  # noqa: E402
    FOUNDER_EMAIL,
    FOUNDER_PASSWORD,
    MEMBER_EMAIL,
    MEMBER_PASSWORD,
)
from fake_backend import FakeBackend  # noqa: E402

from founderdesk.console import Console  # noqa: E402
from founderdesk.persistence.memory import InMemoryKeyValueStore  # noqa: E402
from founderdesk.settings import Settings  # noqa: E402


@pytest.fixture
def config(tmp_path: Path) -> Settings:
    return Settings(api_url="http://testserver/api/v1", state_dir=tmp_path / "state")


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def founder(backend: FakeBackend) -> dict[str, Any]:
    return backend.add_user("Ada Founder", FOUNDER_EMAIL, FOUNDER_PASSWORD, role="founder")


@pytest.fixture
def member(backend: FakeBackend) -> dict[str, Any]:
    return backend.add_user("Grace Member", MEMBER_EMAIL, MEMBER_PASSWORD, role="team_member")


@pytest.fixture
def transport(backend: FakeBackend) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=backend.app)


@pytest_asyncio.fixture
async def console(
    config: Settings,
    storage: InMemoryKeyValueStore,
    transport: httpx.ASGITransport,
) -> AsyncIterator[Console]:
    console = await Console.open(config, storage=storage, transport=transport)
    yield console
    await console.close()
