"""Role-based capability gating and dashboard view selection."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import structlog

from founderdesk.errors import PermissionDenied
from founderdesk.models import Identity, Role
from founderdesk.session import SessionEvent, SessionStore

log = structlog.get_logger(__name__)


class Capability(str, Enum):
    """Operations a caller may be allowed to invoke."""
    TEAM_READ = "team:read"
    TEAM_PROVISION = "team:provision"
    TEAM_UPDATE = "team:update"
    TEAM_DELETE = "team:delete"

    TASK_READ = "task:read"
    TASK_CREATE = "task:create"
    TASK_EDIT = "task:edit"        # arbitrary field / status / assignment edits
    TASK_ADVANCE = "task:advance"  # self-service status advance
    TASK_DELETE = "task:delete"

    CONTACT_READ = "contact:read"
    CONTACT_CREATE = "contact:create"
    CONTACT_UPDATE = "contact:update"
    CONTACT_DELETE = "contact:delete"
    NOTE_APPEND = "note:append"


class DashboardSection(str, Enum):
    OVERVIEW = "overview"
    TEAM = "team"
    TASKS = "tasks"
    CONTACTS = "contacts"


_TEAM_MEMBER_CAPABILITIES = frozenset({
    Capability.TASK_READ,
    Capability.TASK_ADVANCE,
    Capability.CONTACT_READ,
    Capability.NOTE_APPEND,
})

_ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.FOUNDER: frozenset(Capability),
    Role.TEAM_MEMBER: _TEAM_MEMBER_CAPABILITIES,
}

_ROLE_SECTIONS: dict[Role, tuple[DashboardSection, ...]] = {
    Role.FOUNDER: (
        DashboardSection.OVERVIEW,
        DashboardSection.TEAM,
        DashboardSection.TASKS,
        DashboardSection.CONTACTS,
    ),
    Role.TEAM_MEMBER: (DashboardSection.TASKS, DashboardSection.CONTACTS),
}


def capabilities_for(role: Role) -> frozenset[Capability]:
    return _ROLE_CAPABILITIES[role]


@dataclass(frozen=True)
class DashboardView:
    """What the render layer should show for the current identity."""

    name: str  # "founder" | "team_member" | "auth"
    capabilities: frozenset[Capability] = field(default_factory=frozenset)
    sections: tuple[DashboardSection, ...] = ()

    def allows(self, capability: Capability) -> bool:
        return capability in self.capabilities


ANONYMOUS_VIEW = DashboardView(name="auth")


def select_view(identity: Identity | None) -> DashboardView:
    """Pure mapping from the active identity to its dashboard view."""
    if identity is None:
        return ANONYMOUS_VIEW
    return DashboardView(
        name=identity.role.value,
        capabilities=capabilities_for(identity.role),
        sections=_ROLE_SECTIONS[identity.role],
    )


def require(identity: Identity | None, capability: Capability) -> Identity:
    """Check a capability before dispatch; returns the identity for convenience."""
    if identity is None:
        raise PermissionDenied("You must be logged in")
    if capability not in capabilities_for(identity.role):
        log.info("capability_denied", user_id=identity.id, role=identity.role.value, capability=capability.value)
        raise PermissionDenied(
            f"Role '{identity.role.value}' is not permitted to perform '{capability.value}'"
        )
    return identity


ViewListener = Callable[[DashboardView, SessionEvent], None]


class RoleViewSelector:
    """Tracks the session and re-selects the view on every identity change.

    ``current`` is derived from the session on each access; nothing is cached
    across login, logout, expiry or restore.
    """

    def __init__(self, session: SessionStore) -> None:
        self._session = session
        self._listeners: list[ViewListener] = []
        self._unsubscribe = session.subscribe(self._on_session_event)

    @property
    def current(self) -> DashboardView:
        return select_view(self._session.identity)

    def allows(self, capability: Capability) -> bool:
        return self.current.allows(capability)

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _on_session_event(self, event: SessionEvent) -> None:
        view = select_view(event.identity)
        log.debug("view_selected", view=view.name, trigger=event.kind.value)
        for listener in list(self._listeners):
            listener(view, event)

    def close(self) -> None:
        self._unsubscribe()
        self._listeners.clear()
