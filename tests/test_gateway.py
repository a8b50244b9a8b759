"""Gateway tests: credential attachment and failure classification over a mock transport."""

from __future__ import annotations

import httpx
import pytest

from founderdesk.errors import (
    NETWORK_ERROR_MESSAGE,
    SERVER_ERROR_MESSAGE,
    ApiError,
    ConnectivityError,
    DomainError,
    ServerError,
    SessionExpired,
)
from founderdesk.gateway import ApiGateway


class FakeSession:
    """Minimal session port that records forced expiries."""

    def __init__(self, credential: str | None = "tok") -> None:
        self.credential = credential
        self.expired = 0

    async def expire(self) -> str:
        self.expired += 1
        self.credential = None
        return "/auth"


def _gateway(config, handler, session: FakeSession | None = None) -> ApiGateway:
    gateway = ApiGateway(config, transport=httpx.MockTransport(handler))
    if session is not None:
        gateway.bind_session(session)
    return gateway


def _respond(status: int, **kwargs):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, **kwargs)
    return handler


# ---------------------------------------------------------------------------
# Credential attachment
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_bearer_header_attached_from_session(config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    gateway = _gateway(config, handler, FakeSession("abc"))
    assert await gateway.get("/tasks") == []
    assert seen[0].headers["Authorization"] == "Bearer abc"
    assert seen[0].url == "http://testserver/api/v1/tasks"


@pytest.mark.asyncio
async def test_no_header_for_unauthenticated_calls(config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    gateway = _gateway(config, handler, FakeSession("abc"))
    await gateway.post("/auth/register", {"name": "x"}, authenticated=False)
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_no_header_without_credential(config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    await _gateway(config, handler, FakeSession(None)).get("/contacts")
    await _gateway(config, handler).get("/contacts")
    assert all("Authorization" not in r.headers for r in seen)


# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_transport_failure_is_connectivity_error(config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    session = FakeSession()
    with pytest.raises(ConnectivityError) as excinfo:
        await _gateway(config, handler, session).get("/tasks")
    assert excinfo.value.message == NETWORK_ERROR_MESSAGE
    assert excinfo.value.status_code is None
    assert session.expired == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [500, 502, 503])
async def test_5xx_is_server_error(config, status):
    handler = _respond(status, json={"detail": "stack trace here"})
    with pytest.raises(ServerError) as excinfo:
        await _gateway(config, handler, FakeSession()).get("/tasks")
    assert excinfo.value.message == SERVER_ERROR_MESSAGE
    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_401_on_authenticated_call_expires_session(config):
    session = FakeSession()
    with pytest.raises(SessionExpired) as excinfo:
        await _gateway(config, _respond(401, json={"detail": "expired"}), session).get("/tasks")
    assert excinfo.value.redirect_to == "/auth"
    assert session.expired == 1
    assert not isinstance(excinfo.value, ApiError)


@pytest.mark.asyncio
async def test_401_without_bound_session_still_raises_expired(config):
    with pytest.raises(SessionExpired) as excinfo:
        await _gateway(config, _respond(401)).get("/tasks")
    assert excinfo.value.redirect_to == config.login_route


@pytest.mark.asyncio
async def test_401_on_unauthenticated_call_is_domain_error(config):
    session = FakeSession()
    handler = _respond(401, json={"detail": "Incorrect email or password"})
    with pytest.raises(DomainError, match="Incorrect email or password"):
        await _gateway(config, handler, session).post("/auth/token", data={"username": "a"}, authenticated=False)
    assert session.expired == 0


@pytest.mark.asyncio
async def test_string_detail_is_passed_through(config):
    handler = _respond(400, json={"detail": "Email already registered"})
    with pytest.raises(DomainError) as excinfo:
        await _gateway(config, handler).post("/auth/register", {}, authenticated=False)
    assert excinfo.value.message == "Email already registered"
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_validation_detail_list_is_joined(config):
    detail = [
        {"loc": ["body", "email"], "msg": "field required", "type": "missing"},
        {"loc": ["body", "name"], "msg": "string too short", "type": "string_too_short"},
    ]
    with pytest.raises(DomainError) as excinfo:
        await _gateway(config, _respond(422, json={"detail": detail})).post("/contacts", {})
    assert excinfo.value.message == "field required; string too short"


@pytest.mark.asyncio
async def test_plain_text_failure_body(config):
    with pytest.raises(DomainError, match="no such thing"):
        await _gateway(config, _respond(404, text="no such thing")).get("/contacts/9")


@pytest.mark.asyncio
async def test_empty_failure_body_uses_reason_phrase(config):
    with pytest.raises(DomainError, match="Not Found"):
        await _gateway(config, _respond(404)).get("/contacts/9")


# ---------------------------------------------------------------------------
# Bodies
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_empty_success_body_decodes_to_none(config):
    assert await _gateway(config, _respond(204)).delete("/tasks/1") is None


@pytest.mark.asyncio
async def test_non_json_success_body_is_api_error(config):
    with pytest.raises(ApiError, match="Unexpected response"):
        await _gateway(config, _respond(200, text="<html>")).get("/tasks")


@pytest.mark.asyncio
async def test_download_returns_raw_bytes(config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"Email: x\nPassword: y\n")

    body = await _gateway(config, handler).download("/auth/download-credentials/3", params={"generated_password": "y"})
    assert body == b"Email: x\nPassword: y\n"
    assert seen[0].url.params["generated_password"] == "y"


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health_check_hits_server_root(config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"message": "up"})

    result = await _gateway(config, handler).health_check()
    assert result == {"success": True, "url": "http://testserver", "data": {"message": "up"}}
    assert seen[0].url.path == "/"
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_health_check_never_raises(config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    result = await _gateway(config, handler).health_check()
    assert result["success"] is False
    assert result["error"] == NETWORK_ERROR_MESSAGE

    result = await _gateway(config, _respond(503)).health_check()
    assert result == {"success": False, "url": "http://testserver", "error": "HTTP 503"}


@pytest.mark.asyncio
async def test_gateway_context_manager_closes_client(config):
    async with _gateway(config, _respond(200, json=[])) as gateway:
        assert await gateway.get("/tasks") == []
    assert gateway._client.is_closed
