"""Error taxonomy for the console core.

Validation failures are raised before anything is dispatched. Transport and
server outcomes are classified once, at the gateway, into ``ApiError``
subclasses. ``SessionExpired`` sits outside ``ConsoleError`` so that ordinary
``except ConsoleError`` handlers never absorb a forced logout.
"""

from __future__ import annotations

NETWORK_ERROR_MESSAGE = "Network error: Unable to connect to server"
SERVER_ERROR_MESSAGE = "Server error: Please try again later"
COMPLETED_TASK_MESSAGE = "Cannot modify a completed task"


class ConsoleError(Exception):
    """Base class for every error surfaced to a console caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailure(ConsoleError):
    """Input rejected on the client; no request was sent."""


class TransitionNotAllowed(ValidationFailure):
    """The task lifecycle table has no edge for this actor and status."""


class PermissionDenied(ValidationFailure):
    """The active role does not expose the requested capability."""


class ApiError(ConsoleError):
    """A request reached the gateway and failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConnectivityError(ApiError):
    """No response from the server."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message, status_code=None)


class ServerError(ApiError):
    """The server answered with a 5xx status."""

    def __init__(self, status_code: int, message: str = SERVER_ERROR_MESSAGE) -> None:
        super().__init__(message, status_code=status_code)


class DomainError(ApiError):
    """A business-rule rejection carrying the server-supplied detail."""


class CompletedTaskError(DomainError):
    """Completed tasks are terminal; the backend refuses any mutation."""

    def __init__(self, status_code: int | None = None) -> None:
        super().__init__(COMPLETED_TASK_MESSAGE, status_code=status_code)


class SessionExpired(Exception):
    """The credential was rejected and the session has been torn down.

    ``redirect_to`` is the login entry point the view layer should show.
    """

    def __init__(self, redirect_to: str) -> None:
        super().__init__(f"Session expired; redirect to {redirect_to}")
        self.redirect_to = redirect_to
