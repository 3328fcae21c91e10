from __future__ import annotations

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from cloudenv.exceptions import OperationCancelled
from cloudenv.infra.cancel import CancelToken
from cloudenv.infra.http import BearerAuth, HttpClient, HttpError

pytestmark = [pytest.mark.unit, pytest.mark.http]


SLOW_STARTED = web.AppKey("slow_started", asyncio.Event)
SLOW_RELEASE = web.AppKey("slow_release", asyncio.Event)


def make_app(*, token: str = "valid-token") -> web.Application:
    app = web.Application()
    app[SLOW_STARTED] = asyncio.Event()
    app[SLOW_RELEASE] = asyncio.Event()

    async def json_echo(request: web.Request) -> web.Response:
        auth = request.headers.get("Authorization", "")
        if auth != f"Bearer {token}":
            return web.Response(status=401, text="unauthorized")
        body = await request.json() if request.can_read_body else {}
        return web.json_response({
            "echo": body,
            "params": dict(request.query),
            "headers": {k: v for k, v in request.headers.items() if k.startswith("X-")},
        })

    async def text_endpoint(_: web.Request) -> web.Response:
        return web.Response(text="plain-text-response")

    async def empty_json(_: web.Request) -> web.Response:
        return web.Response(status=204, body=b"")

    async def error_endpoint(_: web.Request) -> web.Response:
        return web.json_response({"error": "not found"}, status=404)

    async def server_error(_: web.Request) -> web.Response:
        return web.Response(status=500, text="internal server error")

    async def public(_: web.Request) -> web.Response:
        return web.json_response({"public": True})

    async def slow(_: web.Request) -> web.Response:
        app[SLOW_STARTED].set()
        await app[SLOW_RELEASE].wait()
        return web.json_response({"slow": True})

    app.router.add_route("*", "/echo", json_echo)
    app.router.add_post("/text", text_endpoint)
    app.router.add_get("/empty", empty_json)
    app.router.add_get("/not-found", error_endpoint)
    app.router.add_get("/server-error", server_error)
    app.router.add_get("/public", public)
    app.router.add_get("/slow", slow)
    return app


@pytest.fixture
async def server():
    srv = TestServer(make_app())
    await srv.start_server()
    yield srv
    srv.app[SLOW_RELEASE].set()
    await srv.close()


@pytest.fixture
def base_url(server: TestServer) -> str:
    return f"http://{server.host}:{server.port}"


# ─── BearerAuth ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_bearer_auth_headers():
    h = await BearerAuth("my-token").headers()
    assert h == {"Authorization": "Bearer my-token"}


# ─── Requests ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_json(base_url: str):
    async with HttpClient(base_url, BearerAuth("valid-token")) as http:
        result = await http.request("GET", "/echo", params={"a": "1"})
    assert result["params"]["a"] == "1"


@pytest.mark.asyncio
async def test_post_json(base_url: str):
    async with HttpClient(base_url, BearerAuth("valid-token")) as http:
        result = await http.request("POST", "/echo", json={"key": "value"})
    assert result["echo"]["key"] == "value"


@pytest.mark.asyncio
async def test_params_are_encoded(base_url: str):
    async with HttpClient(base_url, BearerAuth("valid-token")) as http:
        result = await http.request("GET", "/echo", params={"flag": True, "off": False, "n": 3, "skip": None})
    assert result["params"] == {"flag": "true", "off": "false", "n": "3"}


@pytest.mark.asyncio
async def test_text_format(base_url: str):
    async with HttpClient(base_url) as http:
        result = await http.request("POST", "/text", format="text")
    assert result == "plain-text-response"


@pytest.mark.asyncio
async def test_empty_body_returns_none(base_url: str):
    async with HttpClient(base_url) as http:
        result = await http.request("GET", "/empty")
    assert result is None


@pytest.mark.asyncio
async def test_default_and_request_headers(base_url: str):
    async with HttpClient(
        base_url,
        BearerAuth("valid-token"),
        default_headers={"X-App-Id": "Saturn", "X-Other": "default"},
    ) as http:
        result = await http.request("GET", "/echo", headers={"X-Other": "override"})
    assert result["headers"] == {"X-App-Id": "Saturn", "X-Other": "override"}


# ─── Errors ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_http_error_on_4xx(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/not-found")
    assert exc_info.value.status == 404
    assert "not found" in exc_info.value.body


@pytest.mark.asyncio
async def test_http_error_on_5xx(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/server-error")
    assert exc_info.value.status == 500


@pytest.mark.asyncio
async def test_unauthorized(base_url: str):
    async with HttpClient(base_url, BearerAuth("wrong")) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/echo")
    assert exc_info.value.status == 401


@pytest.mark.asyncio
async def test_connection_failure_is_status_zero(base_url: str, server: TestServer):
    await server.close()
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/public")
    assert exc_info.value.status == 0


@pytest.mark.asyncio
async def test_timeout_is_status_zero(base_url: str):
    async with HttpClient(base_url, timeout=0.05) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/slow")
    assert exc_info.value.status == 0


def test_http_error_str():
    assert str(HttpError(status=429, body="rate limited")) == "HTTP 429: rate limited"


# ─── Cancellation ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_cancel_aborts_in_flight_request(base_url: str, server: TestServer):
    token = CancelToken()
    async with HttpClient(base_url) as http:
        call = asyncio.create_task(http.request("GET", "/slow", cancel=token))
        await asyncio.wait_for(server.app[SLOW_STARTED].wait(), timeout=5)
        token.cancel("superseded")
        with pytest.raises(OperationCancelled, match="superseded"):
            await call
    assert not server.app[SLOW_RELEASE].is_set()


@pytest.mark.asyncio
async def test_cancelled_token_skips_request(base_url: str, server: TestServer):
    token = CancelToken()
    token.cancel()
    async with HttpClient(base_url) as http:
        with pytest.raises(OperationCancelled):
            await http.request("GET", "/slow", cancel=token)
    assert not server.app[SLOW_STARTED].is_set()


@pytest.mark.asyncio
async def test_unfired_token_is_transparent(base_url: str):
    async with HttpClient(base_url) as http:
        result = await http.request("GET", "/public", cancel=CancelToken())
    assert result == {"public": True}


# ─── Session lifecycle ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_close_idempotent(base_url: str):
    http = HttpClient(base_url)
    await http.close()
    await http.close()


@pytest.mark.asyncio
async def test_session_created_lazily(base_url: str):
    http = HttpClient(base_url)
    assert http._session is None
    await http.request("GET", "/public")
    assert http._session is not None
    await http.close()


@pytest.mark.asyncio
async def test_base_url_trailing_slash_stripped():
    http = HttpClient("http://example.com/")
    assert http.base_url == "http://example.com"
    await http.close()
