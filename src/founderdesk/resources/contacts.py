"""Contacts and their notes over the gateway."""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import BaseModel, field_validator

from founderdesk import notes
from founderdesk.errors import ValidationFailure
from founderdesk.gateway import ApiGateway
from founderdesk.models import Contact

log = structlog.get_logger(__name__)


class ContactDraft(BaseModel):
    """Payload for creating a contact."""
    name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None

    @field_validator("email", "phone", "company", "position", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ContactClient:
    def __init__(self, gateway: ApiGateway) -> None:
        self._gateway = gateway

    async def list(self) -> list[Contact]:
        body = await self._gateway.get("/contacts")
        return [Contact.model_validate(item) for item in body or []]

    async def get(self, contact_id: str) -> Contact:
        return Contact.model_validate(await self._gateway.get(f"/contacts/{contact_id}"))

    async def create(self, draft: ContactDraft) -> Contact:
        if not draft.name.strip():
            raise ValidationFailure("Contact name is required")
        body = await self._gateway.post("/contacts", draft.model_dump())
        return Contact.model_validate(body)

    async def update(self, contact_id: str, fields: dict[str, Any]) -> Contact:
        body = await self._gateway.put(f"/contacts/{contact_id}", fields)
        return Contact.model_validate(body)

    async def delete(self, contact_id: str) -> None:
        await self._gateway.delete(f"/contacts/{contact_id}")

    async def add_note(self, contact_id: str, text: str) -> Contact:
        """Append a note and return the contact as the server now stores it.

        Only the content is sent; the backend stamps timestamp and author.
        """
        content = notes.prepare_note(text)
        await self._gateway.post(f"/contacts/{contact_id}/notes", {"note": content})
        log.info("note_added", contact_id=contact_id)
        return await self.get(contact_id)
