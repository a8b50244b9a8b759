"""Dashboard loading: parallel, failure-isolated reads per role."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError

from founderdesk.errors import ApiError, SessionExpired
from founderdesk.models import Contact, Identity, Task, TaskStats
from founderdesk.resources.contacts import ContactClient
from founderdesk.resources.tasks import TaskClient
from founderdesk.resources.team import TeamClient
from founderdesk.roles import DashboardSection, DashboardView, select_view

log = structlog.get_logger(__name__)

MALFORMED_SECTION_MESSAGE = "Unexpected response from server"


@dataclass
class DashboardSnapshot:
    """Whatever loaded; ``failed`` maps section name to the error message for what did not."""

    view: DashboardView
    team: list[Identity] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    contacts: list[Contact] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed

    @property
    def stats(self) -> TaskStats:
        return TaskStats.from_records(self.tasks, self.contacts, self.team)

    def my_tasks(self, identity: Identity) -> list[Task]:
        return [t for t in self.tasks if t.is_assigned_to(identity)]


class DashboardLoader:
    """Fetches the records a view needs.

    Reads run concurrently and settle independently: one failing read does
    not cancel the others, and its section is reported in ``failed``.
    A session expiry in any read is re-raised once all reads have settled.
    """

    def __init__(self, team: TeamClient, tasks: TaskClient, contacts: ContactClient) -> None:
        self._team = team
        self._tasks = tasks
        self._contacts = contacts

    async def load(self, identity: Identity | None) -> DashboardSnapshot:
        view = select_view(identity)
        snapshot = DashboardSnapshot(view=view)
        if identity is None:
            return snapshot

        reads: dict[str, Awaitable[Any]] = {}
        if DashboardSection.TEAM in view.sections:
            reads["team"] = self._team.list()
        reads["tasks"] = self._tasks.list()
        reads["contacts"] = self._contacts.list()

        results = await asyncio.gather(*reads.values(), return_exceptions=True)

        expired: SessionExpired | None = None
        for name, result in zip(reads, results):
            if isinstance(result, SessionExpired):
                expired = result
            elif isinstance(result, ApiError):
                log.error("dashboard_section_failed", section=name, error=result.message)
                snapshot.failed[name] = result.message
            elif isinstance(result, ValidationError):
                log.error("dashboard_section_malformed", section=name, errors=result.error_count())
                snapshot.failed[name] = MALFORMED_SECTION_MESSAGE
            elif isinstance(result, BaseException):
                raise result
            else:
                setattr(snapshot, name, result)

        if expired is not None:
            raise expired

        log.info(
            "dashboard_loaded",
            view=view.name,
            tasks=len(snapshot.tasks),
            contacts=len(snapshot.contacts),
            team=len(snapshot.team),
            failed=sorted(snapshot.failed),
        )
        return snapshot
