"""Domain models exchanged with the backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    """Roles an identity can hold."""
    FOUNDER = "founder"
    TEAM_MEMBER = "team_member"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _coerce_id(v: object) -> object:
    # Backend ids may be ints or strings; compare them as strings.
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


class _BackendModel(BaseModel):
    model_config = {"extra": "ignore"}


class Identity(_BackendModel):
    """The authenticated principal of the current session."""
    id: str
    name: str
    email: str
    role: Role

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: object) -> object:
        return _coerce_id(v)

    @property
    def is_founder(self) -> bool:
        return self.role is Role.FOUNDER


class Task(_BackendModel):
    id: str
    title: str
    description: str = ""
    assigned_to: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: date | None = None

    @field_validator("id", "assigned_to", mode="before")
    @classmethod
    def normalize_ids(cls, v: object) -> object:
        return _coerce_id(v)

    @field_validator("description", mode="before")
    @classmethod
    def null_description(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, v: object) -> object:
        # Forms send "" for "no due date"; datetimes are cut to their date.
        if v == "":
            return None
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v

    def is_assigned_to(self, identity: Identity) -> bool:
        return self.assigned_to is not None and self.assigned_to == identity.id


class Contact(_BackendModel):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None
    notes: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: object) -> object:
        return _coerce_id(v)

    @field_validator("notes", mode="before")
    @classmethod
    def null_notes(cls, v: object) -> object:
        return [] if v is None else v


class ProvisionedMember(_BackendModel):
    """A freshly created team member and the one-time password generated for them."""
    user: Identity
    generated_password: str


@dataclass(frozen=True)
class Annotation:
    """Structured view of one raw contact note. The raw string stays the durable form."""

    timestamp: str
    author: str
    content: str
    legacy: bool = False  # produced by the fallback path, not parsed


@dataclass(frozen=True)
class TaskStats:
    """Counts shown on the dashboard overview."""

    total_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    completed_tasks: int = 0
    total_contacts: int = 0
    total_team_members: int = 0

    @classmethod
    def from_records(
        cls,
        tasks: list[Task],
        contacts: list[Contact],
        team: list[Identity] | None = None,
    ) -> TaskStats:
        by_status = {status: 0 for status in TaskStatus}
        for task in tasks:
            by_status[task.status] += 1
        return cls(
            total_tasks=len(tasks),
            pending_tasks=by_status[TaskStatus.PENDING],
            in_progress_tasks=by_status[TaskStatus.IN_PROGRESS],
            completed_tasks=by_status[TaskStatus.COMPLETED],
            total_contacts=len(contacts),
            total_team_members=len(team or []),
        )
