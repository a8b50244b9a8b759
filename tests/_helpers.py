"""Shared test helpers - importable from test modules."""

from __future__ import annotations

from typing import Any

from founderdesk.models import Identity, Role, Task, TaskStatus
from founderdesk.session import SessionEvent

FOUNDER_EMAIL = "ada@example.com"
FOUNDER_PASSWORD = "founder-pass"
MEMBER_EMAIL = "grace@example.com"
MEMBER_PASSWORD = "member-pass"


def make_identity(role: Role = Role.FOUNDER, id: str = "1", name: str = "Ada Founder") -> Identity:
    return Identity(id=id, name=name, email=f"user{id}@example.com", role=role)


def make_task(
    status: TaskStatus = TaskStatus.PENDING,
    assigned_to: str | None = "2",
    id: str = "10",
    **extra: Any,
) -> Task:
    return Task(id=id, title=extra.pop("title", "Ship it"), status=status, assigned_to=assigned_to, **extra)


class EventRecorder:
    """Session listener that keeps every event it sees."""

    def __init__(self) -> None:
        self.events: list[SessionEvent] = []

    def __call__(self, event: SessionEvent) -> None:
        self.events.append(event)

    @property
    def kinds(self) -> list[str]:
        return [event.kind.value for event in self.events]


def sent(backend: Any, method: str, path: str | None = None) -> list[tuple[str, str, str | None]]:
    """Requests the fake backend received, filtered by method and optionally path."""
    return [
        r for r in backend.requests
        if r[0] == method and (path is None or r[1] == path)
    ]
