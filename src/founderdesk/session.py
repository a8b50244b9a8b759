"""Session store: the single source of truth for who is logged in."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from founderdesk.errors import ApiError, ValidationFailure
from founderdesk.models import Identity, Role
from founderdesk.persistence.base import KeyValueStore
from founderdesk.settings import Settings, settings

if TYPE_CHECKING:
    from founderdesk.gateway import ApiGateway

log = structlog.get_logger(__name__)

TOKEN_KEY = "token"
IDENTITY_KEY = "user"


class SessionEventKind(str, Enum):
    RESTORED = "restored"
    LOGIN = "login"
    LOGOUT = "logout"
    EXPIRED = "expired"


@dataclass(frozen=True)
class SessionEvent:
    """Emitted after every change of the active identity.

    ``redirect_to`` is set on ``EXPIRED``: the view layer should navigate there.
    """

    kind: SessionEventKind
    identity: Identity | None
    redirect_to: str | None = None


SessionListener = Callable[[SessionEvent], None]


class SessionStore:
    """Holds the active identity and its credential, persisted write-through.

    The store is the only writer of the credential. Login, logout and the
    gateway's forced logout all go through it.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        gateway: ApiGateway,
        config: Settings | None = None,
    ) -> None:
        self._storage = storage
        self._gateway = gateway
        self._config = config or settings
        self._identity: Identity | None = None
        self._credential: str | None = None
        self._listeners: list[SessionListener] = []
        gateway.bind_session(self)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def credential(self) -> str | None:
        # Never hand out a credential without an identity behind it.
        if self._identity is None:
            return None
        return self._credential

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None and self._credential is not None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                log.error("session_listener_failed", event=event.kind.value, error=str(exc))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _clear(self) -> None:
        self._identity = None
        self._credential = None
        await self._storage.delete(TOKEN_KEY)
        await self._storage.delete(IDENTITY_KEY)

    async def _activate(self, identity: Identity, credential: str) -> None:
        await self._storage.set(TOKEN_KEY, credential)
        await self._storage.set(IDENTITY_KEY, identity.model_dump_json())
        self._identity = identity
        self._credential = credential

    async def restore(self) -> Identity | None:
        """Activate a persisted session if both halves are present and well-formed.

        Never raises. Anything else (missing half, corrupt JSON, unreadable
        storage) leaves the store logged out and erases the leftovers.
        """
        identity: Identity | None = None
        # Storage is authoritative: nothing persisted means nobody is logged in.
        self._identity = None
        self._credential = None
        try:
            token = await self._storage.get(TOKEN_KEY)
            raw_identity = await self._storage.get(IDENTITY_KEY)
            if token and raw_identity:
                identity = Identity.model_validate_json(raw_identity)
                self._identity = identity
                self._credential = token
                log.info("session_restored", user_id=identity.id, role=identity.role.value)
            elif token or raw_identity:
                log.warning("session_half_persisted", has_token=bool(token), has_identity=bool(raw_identity))
                await self._clear()
        except ValidationError as exc:
            log.warning("session_identity_malformed", errors=exc.error_count())
            identity = None
            await self._safe_clear()
        except Exception as exc:
            log.warning("session_restore_failed", error=str(exc))
            identity = None
            await self._safe_clear()

        self._emit(SessionEvent(SessionEventKind.RESTORED, identity))
        return identity

    async def _safe_clear(self) -> None:
        self._identity = None
        self._credential = None
        try:
            await self._storage.delete(TOKEN_KEY)
            await self._storage.delete(IDENTITY_KEY)
        except Exception as exc:
            log.warning("session_storage_clear_failed", error=str(exc))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> Identity:
        """Exchange credentials for a token and activate the returned identity.

        Raises the gateway's classified error on failure; state is unchanged then.
        """
        body = await self._gateway.post(
            "/auth/token",
            data={"username": email, "password": password},
            authenticated=False,
        )
        identity, credential = self._parse_login(body)

        await self._activate(identity, credential)
        log.info("login_succeeded", user_id=identity.id, role=identity.role.value)
        self._emit(SessionEvent(SessionEventKind.LOGIN, identity))
        return identity

    @staticmethod
    def _parse_login(body: Any) -> tuple[Identity, str]:
        if not isinstance(body, dict):
            raise ApiError("Login failed")
        token = body.get("access_token")
        if not isinstance(token, str) or not token:
            raise ApiError("Login failed")
        try:
            identity = Identity.model_validate(body.get("user"))
        except ValidationError as exc:
            raise ApiError("Login failed") from exc
        return identity, token

    async def register(self, name: str, email: str, password: str) -> Identity:
        """Create a founder account. Does not log in."""
        body = await self._gateway.post(
            "/auth/register",
            {"name": name, "email": email, "password": password, "role": Role.FOUNDER.value},
            authenticated=False,
        )
        try:
            identity = Identity.model_validate(body)
        except ValidationError as exc:
            raise ApiError("Registration failed") from exc
        log.info("registration_succeeded", user_id=identity.id)
        return identity

    async def reset_password(
        self,
        email: str,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        if new_password != confirm_password:
            raise ValidationFailure("New passwords do not match")
        await self._gateway.post(
            "/auth/reset-password",
            {"email": email, "current_password": current_password, "new_password": new_password},
            authenticated=False,
        )
        log.info("password_reset", email=email)

    async def logout(self) -> None:
        """Clear the active session and its persisted copy. Safe with no session."""
        previous = self._identity
        await self._clear()
        if previous is not None:
            log.info("logout", user_id=previous.id)
            self._emit(SessionEvent(SessionEventKind.LOGOUT, None))

    async def expire(self) -> str:
        """Forced teardown after the credential was rejected.

        Unconditional, even if nothing is active. Returns the login entry point.
        """
        previous = self._identity
        await self._safe_clear()
        redirect_to = self._config.login_route
        log.warning(
            "session_expired",
            user_id=previous.id if previous is not None else None,
            redirect_to=redirect_to,
        )
        self._emit(SessionEvent(SessionEventKind.EXPIRED, None, redirect_to=redirect_to))
        return redirect_to
