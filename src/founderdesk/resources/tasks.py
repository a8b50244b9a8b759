"""Task records over the gateway. Status rules live in ``founderdesk.lifecycle``."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, field_validator

from founderdesk.errors import ValidationFailure
from founderdesk.gateway import ApiGateway
from founderdesk.models import Task, TaskPriority


class TaskDraft(BaseModel):
    """Payload for creating a task."""
    title: str
    description: str = ""
    assigned_to: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None

    @field_validator("assigned_to", "due_date", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class TaskClient:
    def __init__(self, gateway: ApiGateway) -> None:
        self._gateway = gateway

    async def list(self) -> list[Task]:
        body = await self._gateway.get("/tasks")
        return [Task.model_validate(item) for item in body or []]

    async def create(self, draft: TaskDraft) -> Task:
        if not draft.title.strip():
            raise ValidationFailure("Task title is required")
        body = await self._gateway.post("/tasks", draft.model_dump(mode="json"))
        return Task.model_validate(body)

    async def update(self, task_id: str, fields: dict[str, Any]) -> Task | None:
        body = await self._gateway.put(f"/tasks/{task_id}", fields)
        if body is None:
            return None
        return Task.model_validate(body)

    async def delete(self, task_id: str) -> None:
        await self._gateway.delete(f"/tasks/{task_id}")
