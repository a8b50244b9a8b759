"""Task lifecycle: the status transition table and the controller that enforces it.

States are pending -> in_progress -> completed; completed is terminal. The
table below is checked before anything is sent, but the backend remains the
authority: every attempted mutation is followed by a re-fetch, and the local
snapshot only ever holds what the server confirmed.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

import structlog

from founderdesk.errors import (
    ApiError,
    CompletedTaskError,
    DomainError,
    TransitionNotAllowed,
)
from founderdesk.models import Identity, Role, Task, TaskStatus
from founderdesk.resources.tasks import TaskClient, TaskDraft
from founderdesk.roles import Capability, require
from founderdesk.session import SessionStore

log = structlog.get_logger(__name__)

_P, _I, _C = TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED

# (current status, actor role) -> statuses reachable in one step.
# Team-member rows apply only to the assignee.
TRANSITIONS: dict[tuple[TaskStatus, Role], frozenset[TaskStatus]] = {
    (_P, Role.FOUNDER): frozenset({_I, _C}),
    (_I, Role.FOUNDER): frozenset({_P, _C}),
    (_C, Role.FOUNDER): frozenset(),
    (_P, Role.TEAM_MEMBER): frozenset({_I}),
    (_I, Role.TEAM_MEMBER): frozenset({_C}),
    (_C, Role.TEAM_MEMBER): frozenset(),
}

_ADVANCE: dict[TaskStatus, TaskStatus] = {_P: _I, _I: _C}

# The backend answers 403 when asked to mutate a completed task.
_COMPLETED_REJECTION_STATUS = 403


def allowed_transitions(task: Task, identity: Identity) -> frozenset[TaskStatus]:
    if identity.role is Role.TEAM_MEMBER and not task.is_assigned_to(identity):
        return frozenset()
    return TRANSITIONS[(task.status, identity.role)]


def next_status(task: Task) -> TaskStatus | None:
    """The status-advance step for a task; None once it is completed."""
    return _ADVANCE.get(task.status)


def check_transition(task: Task, identity: Identity, target: TaskStatus) -> None:
    """Raise before dispatch if ``identity`` may not move ``task`` to ``target``."""
    if task.status is TaskStatus.COMPLETED:
        raise CompletedTaskError()
    if target not in allowed_transitions(task, identity):
        if identity.role is Role.TEAM_MEMBER and not task.is_assigned_to(identity):
            raise TransitionNotAllowed("You can only update tasks assigned to you")
        raise TransitionNotAllowed(
            f"Cannot move a task from {task.status.value} to {target.value}"
        )


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


class TaskLifecycleController:
    """Status changes, edits, creation and deletion of tasks for the active identity.

    ``tasks`` is the last server-confirmed list. It is replaced by a fresh
    fetch after every attempted mutation, successful or not; if that fetch
    fails after a committed mutation, the server's reply is applied instead.
    """

    def __init__(self, client: TaskClient, session: SessionStore) -> None:
        self._client = client
        self._session = session
        self._tasks: list[Task] = []

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def find(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.id == str(task_id)), None)

    async def refresh(self) -> list[Task]:
        self._tasks = await self._client.list()
        return self.tasks

    async def _task(self, task_id: str) -> Task:
        task = self.find(task_id)
        if task is None:
            await self.refresh()
            task = self.find(task_id)
        if task is None:
            raise DomainError("Task not found", status_code=404)
        return task

    async def _mutate(self, task_id: str, action: str, fields: dict[str, Any] | None) -> None:
        """Send one mutation, then re-fetch whatever the outcome.

        A failed refresh is logged, never raised: after a failed mutation the
        caller sees the mutation's error, after a committed one the snapshot
        takes the server's reply instead. ``SessionExpired`` skips the refresh.
        """
        confirmed: Task | None = None
        try:
            if fields is None:
                await self._client.delete(task_id)
            else:
                confirmed = await self._client.update(task_id, fields)
        except ApiError as exc:
            await self._refresh_quietly(task_id)
            surfaced = self._surface(task_id, exc)
            log.info("task_mutation_rejected", task_id=task_id, action=action, error=surfaced.message)
            raise surfaced from exc

        if await self._refresh_quietly(task_id):
            return
        if fields is None:
            self._tasks = [t for t in self._tasks if t.id != task_id]
        elif confirmed is not None:
            self._tasks = [confirmed if t.id == task_id else t for t in self._tasks]

    async def _refresh_quietly(self, task_id: str) -> bool:
        try:
            await self.refresh()
        except ApiError as exc:
            log.warning("task_refresh_failed", task_id=task_id, error=exc.message)
            return False
        return True

    def _surface(self, task_id: str, exc: ApiError) -> ApiError:
        """A 403 on a task the server reports as completed is the terminal-state rejection."""
        if isinstance(exc, DomainError) and exc.status_code == _COMPLETED_REJECTION_STATUS:
            current = self.find(task_id)
            if current is not None and current.status is TaskStatus.COMPLETED:
                return CompletedTaskError(status_code=exc.status_code)
        return exc

    async def transition(self, task_id: str, target: TaskStatus) -> Task | None:
        """Move a task to ``target`` if the lifecycle table allows it.

        Returns the task as re-fetched from the server (None if it vanished).
        """
        identity = require(self._session.identity, Capability.TASK_ADVANCE)
        task = await self._task(task_id)
        check_transition(task, identity, target)

        await self._mutate(task.id, "transition", {"status": target.value})
        log.info("task_transitioned", task_id=task.id, from_status=task.status.value, to_status=target.value)
        return self.find(task.id)

    async def advance(self, task_id: str) -> Task | None:
        """Move a task one step along pending -> in_progress -> completed."""
        task = await self._task(task_id)
        target = next_status(task)
        if target is None:
            raise CompletedTaskError()
        return await self.transition(task.id, target)

    async def edit(self, task_id: str, **fields: Any) -> Task | None:
        """Founder-only direct field edit; not bound by the transition table."""
        require(self._session.identity, Capability.TASK_EDIT)
        known = self.find(task_id)
        if known is not None and known.status is TaskStatus.COMPLETED:
            raise CompletedTaskError()
        payload = {key: _to_json(value) for key, value in fields.items()}
        await self._mutate(str(task_id), "edit", payload)
        return self.find(str(task_id))

    async def create(self, draft: TaskDraft) -> Task:
        require(self._session.identity, Capability.TASK_CREATE)
        created = await self._client.create(draft)
        log.info("task_created", task_id=created.id, assigned_to=created.assigned_to)
        await self.refresh()
        return created

    async def delete(self, task_id: str) -> None:
        require(self._session.identity, Capability.TASK_DELETE)
        await self._mutate(str(task_id), "delete", None)
        log.info("task_deleted", task_id=task_id)
