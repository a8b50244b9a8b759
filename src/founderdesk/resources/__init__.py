"""Typed clients for the backend's team, task and contact resources."""

from __future__ import annotations

from founderdesk.resources.contacts import ContactClient, ContactDraft
from founderdesk.resources.tasks import TaskClient, TaskDraft
from founderdesk.resources.team import TeamClient, credentials_filename

__all__ = [
    "ContactClient",
    "ContactDraft",
    "TaskClient",
    "TaskDraft",
    "TeamClient",
    "credentials_filename",
]
