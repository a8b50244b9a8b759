"""Authenticated request gateway: every backend call goes through here."""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from founderdesk.errors import (
    ApiError,
    ConnectivityError,
    DomainError,
    ServerError,
    SessionExpired,
)
from founderdesk.settings import Settings, settings

log = structlog.get_logger(__name__)

_API_SUFFIX = "/api/v1"


class SessionPort(Protocol):
    """What the gateway needs from the session: the credential and a way to tear it down."""

    @property
    def credential(self) -> str | None: ...

    async def expire(self) -> str: ...


def _extract_detail(resp: httpx.Response) -> str:
    """Server-supplied failure detail, unchanged where possible."""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list):
            # FastAPI validation errors: [{"loc": [...], "msg": "...", ...}, ...]
            messages = [
                item.get("msg", str(item)) if isinstance(item, dict) else str(item)
                for item in detail
            ]
            return "; ".join(messages)
        return str(detail)

    text = resp.text.strip()
    if text:
        return text
    return resp.reason_phrase or f"Request failed with status {resp.status_code}"


class ApiGateway:
    """Wraps one ``httpx.AsyncClient`` with credential attachment and failure classification.

    - A bearer header is attached when the bound session holds a credential.
    - 401 on an authenticated call tears the session down and raises ``SessionExpired``.
    - No response -> ``ConnectivityError``; 5xx -> ``ServerError``;
      any other failure -> ``DomainError`` with the server's detail.

    Calls are at-most-once: nothing here retries.
    """

    def __init__(
        self,
        config: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or settings
        self._api_url = self._config.api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._api_url,
            timeout=httpx.Timeout(self._config.request_timeout),
            transport=transport,
        )
        self._session: SessionPort | None = None

    @property
    def api_url(self) -> str:
        return self._api_url

    def bind_session(self, session: SessionPort) -> None:
        self._session = session

    def _headers(self, authenticated: bool) -> dict[str, str]:
        if not authenticated or self._session is None:
            return {}
        token = self._session.credential
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        """Send one request and return the successful response, or raise a classified error."""
        try:
            resp = await self._client.request(
                method,
                path,
                json=json,
                data=data,
                params=params,
                headers=self._headers(authenticated),
            )
        except httpx.TransportError as exc:
            log.warning("api_unreachable", method=method, path=path, error=str(exc))
            raise ConnectivityError() from exc

        if resp.is_success:
            log.debug("api_request", method=method, path=path, status=resp.status_code)
            return resp

        raise await self._classify_failure(resp, method, path, authenticated)

    async def _classify_failure(
        self,
        resp: httpx.Response,
        method: str,
        path: str,
        authenticated: bool,
    ) -> Exception:
        """Map a failed response to the exception the caller should see."""
        status = resp.status_code

        if status == 401 and authenticated:
            log.warning("credential_rejected", method=method, path=path)
            if self._session is not None:
                redirect_to = await self._session.expire()
            else:
                redirect_to = self._config.login_route
            return SessionExpired(redirect_to)

        if status >= 500:
            log.error("api_server_error", method=method, path=path, status=status)
            return ServerError(status)

        detail = _extract_detail(resp)
        log.info("api_request_rejected", method=method, path=path, status=status, detail=detail)
        return DomainError(detail, status_code=status)

    # ------------------------------------------------------------------
    # JSON helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError("Unexpected response from server", status_code=resp.status_code) from exc

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return self._decode(await self.request("GET", path, params=params))

    async def post(
        self,
        path: str,
        json: Any = None,
        *,
        data: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        resp = await self.request("POST", path, json=json, data=data, authenticated=authenticated)
        return self._decode(resp)

    async def put(self, path: str, json: Any = None) -> Any:
        return self._decode(await self.request("PUT", path, json=json))

    async def delete(self, path: str) -> Any:
        return self._decode(await self.request("DELETE", path))

    async def download(self, path: str, *, params: dict[str, Any] | None = None) -> bytes:
        """GET a file body as raw bytes."""
        resp = await self.request("GET", path, params=params)
        return resp.content

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    async def health_check(self) -> dict[str, Any]:
        """Check the server root. Never raises."""
        base_url = self._api_url.removesuffix(_API_SUFFIX) or self._api_url
        try:
            resp = await self._client.get(base_url)
        except httpx.TransportError as exc:
            log.warning("health_check_failed", url=base_url, error=str(exc))
            return {"success": False, "url": base_url, "error": ConnectivityError().message}

        if not resp.is_success:
            log.warning("health_check_failed", url=base_url, status=resp.status_code)
            return {"success": False, "url": base_url, "error": f"HTTP {resp.status_code}"}

        try:
            data: Any = resp.json()
        except ValueError:
            data = resp.text
        log.debug("health_check_ok", url=base_url)
        return {"success": True, "url": base_url, "data": data}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
