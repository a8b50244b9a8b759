"""Console factory: wires settings, storage, session, gateway and services together."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
import structlog

from founderdesk.dashboard import DashboardLoader, DashboardSnapshot
from founderdesk.gateway import ApiGateway
from founderdesk.lifecycle import TaskLifecycleController
from founderdesk.models import Annotation, Contact, Identity, ProvisionedMember
from founderdesk.notes import decode_all
from founderdesk.persistence.base import KeyValueStore
from founderdesk.persistence.db import DatabaseManager
from founderdesk.persistence.paths import get_db_path
from founderdesk.persistence.sqlite import SqliteKeyValueStore
from founderdesk.resources.contacts import ContactClient, ContactDraft
from founderdesk.resources.tasks import TaskClient
from founderdesk.resources.team import TeamClient
from founderdesk.roles import Capability, RoleViewSelector, require
from founderdesk.session import SessionStore
from founderdesk.settings import Settings, settings

log = structlog.get_logger(__name__)


class Console:
    """The client-side core of the operations console.

    Usage::

        async with await Console.open() as console:
            await console.session.login("ada@example.com", "secret")
            snapshot = await console.load_dashboard()

    Every operation that needs a capability checks it against the active
    identity before anything is sent.
    """

    def __init__(
        self,
        config: Settings,
        storage: KeyValueStore,
        gateway: ApiGateway,
        *,
        db: DatabaseManager | None = None,
    ) -> None:
        self.config = config
        self.gateway = gateway
        self.session = SessionStore(storage, gateway, config)
        self.views = RoleViewSelector(self.session)

        self.team = TeamClient(gateway)
        self.contacts = ContactClient(gateway)
        task_client = TaskClient(gateway)
        self.tasks = TaskLifecycleController(task_client, self.session)
        self.dashboard = DashboardLoader(self.team, task_client, self.contacts)

        self._db = db

    @classmethod
    async def open(
        cls,
        config: Settings | None = None,
        *,
        storage: KeyValueStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Console:
        """Build a console and restore any persisted session.

        Without an explicit ``storage`` the session is kept in SQLite under
        ``config.state_dir``.
        """
        config = config or settings
        db: DatabaseManager | None = None
        if storage is None:
            db = DatabaseManager(get_db_path(config.state_dir))
            await db.initialize()
            storage = SqliteKeyValueStore(db)

        console = cls(config, storage, ApiGateway(config, transport=transport), db=db)
        identity = await console.session.restore()
        log.info("console_opened", api_url=config.api_url, restored=identity is not None)
        return console

    async def close(self) -> None:
        self.views.close()
        await self.gateway.aclose()
        if self._db is not None:
            await self._db.close()
        log.debug("console_closed")

    async def __aenter__(self) -> Console:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def identity(self) -> Identity | None:
        return self.session.identity

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def load_dashboard(self) -> DashboardSnapshot:
        return await self.dashboard.load(self.session.identity)

    async def health_check(self) -> dict[str, Any]:
        return await self.gateway.health_check()

    # ------------------------------------------------------------------
    # Team
    # ------------------------------------------------------------------

    async def list_team(self) -> list[Identity]:
        require(self.identity, Capability.TEAM_READ)
        return await self.team.list()

    async def provision_team_member(self, name: str, email: str) -> ProvisionedMember:
        require(self.identity, Capability.TEAM_PROVISION)
        return await self.team.provision(name, email)

    async def save_member_credentials(self, member: ProvisionedMember, directory: Path | str) -> Path:
        require(self.identity, Capability.TEAM_PROVISION)
        return await self.team.save_credentials(member, directory)

    async def update_team_member(self, member_id: str, **fields: Any) -> Identity:
        require(self.identity, Capability.TEAM_UPDATE)
        return await self.team.update(member_id, **fields)

    async def remove_team_member(self, member_id: str) -> None:
        require(self.identity, Capability.TEAM_DELETE)
        await self.team.remove(member_id)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    async def list_contacts(self) -> list[Contact]:
        require(self.identity, Capability.CONTACT_READ)
        return await self.contacts.list()

    async def get_contact(self, contact_id: str) -> Contact:
        require(self.identity, Capability.CONTACT_READ)
        return await self.contacts.get(contact_id)

    async def create_contact(self, draft: ContactDraft) -> Contact:
        require(self.identity, Capability.CONTACT_CREATE)
        return await self.contacts.create(draft)

    async def update_contact(self, contact_id: str, **fields: Any) -> Contact:
        require(self.identity, Capability.CONTACT_UPDATE)
        return await self.contacts.update(contact_id, fields)

    async def delete_contact(self, contact_id: str) -> None:
        require(self.identity, Capability.CONTACT_DELETE)
        await self.contacts.delete(contact_id)

    async def add_note(self, contact_id: str, text: str) -> Contact:
        require(self.identity, Capability.NOTE_APPEND)
        return await self.contacts.add_note(contact_id, text)

    async def contact_notes(self, contact_id: str) -> list[Annotation]:
        contact = await self.get_contact(contact_id)
        return decode_all(contact.notes)
