from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

import aiohttp

from cloudenv.infra.cancel import CancelToken
from cloudenv.observability.logger import logger

# ─── Errors ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class HttpError(Exception):
    status: int
    body: str

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.body}"


# ─── Auth ────────────────────────────────────────────────────────────


@runtime_checkable
class Auth(Protocol):
    async def headers(self) -> dict[str, str]: ...


class BearerAuth:
    def __init__(self, token: str) -> None:
        self._token = token

    async def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}


# ─── Client ──────────────────────────────────────────────────────────

type Format = Literal["json", "text"]
type Params = dict[str, Any]


class HttpClient:
    """Thin aiohttp wrapper shared by the Leonardo and storage clients.

    Retry and backoff are not handled here; every response with a status of
    400 or more raises :class:`HttpError`, connection failures raise it with
    status 0. Passing ``cancel`` lets a caller abort the in-flight request.
    """

    def __init__(
        self,
        base_url: str,
        auth: Auth | None = None,
        *,
        timeout: float = 30,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._default_headers = default_headers or {}
        self._session: aiohttp.ClientSession | None = None
        self._log = logger.bind(component="http")

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        if not path:
            return self._base_url
        return f"{self._base_url}/{path.lstrip('/')}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def _build_headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        headers = {"Accept": "application/json", **self._default_headers}
        if self._auth:
            headers.update(await self._auth.headers())
        if extra:
            headers.update(extra)
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | list[Any] | None,
        params: Params | None,
        headers: dict[str, str] | None,
        format: Format,
    ) -> Any:
        session = await self._ensure_session()
        request_headers = await self._build_headers(headers)
        self._log.trace("{method} {path} params={params}", method=method, path=path, params=params)

        try:
            async with session.request(
                method,
                self._url(path),
                headers=request_headers,
                json=json,
                params=_encode_params(params),
            ) as resp:
                return await self._parse(resp, format)
        except aiohttp.ClientResponseError as e:
            raise HttpError(status=e.status, body=e.message) from e
        except aiohttp.ClientError as e:
            raise HttpError(status=0, body=str(e)) from e
        except TimeoutError as e:
            raise HttpError(status=0, body="timeout") from e

    async def _parse(self, resp: aiohttp.ClientResponse, format: Format) -> Any:
        if resp.status >= 400:
            body = await resp.text()
            self._log.warning(
                "HTTP {status} from {url}: {body}",
                status=resp.status, url=str(resp.url), body=body[:500],
            )
            raise HttpError(status=resp.status, body=body)
        match format:
            case "json":
                raw = await resp.read()
                return await resp.json(content_type=None) if raw else None
            case "text":
                return await resp.text()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | list[Any] | None = None,
        params: Params | None = None,
        headers: dict[str, str] | None = None,
        format: Format = "json",
        cancel: CancelToken | None = None,
    ) -> Any:
        call = self._send(method, path, json=json, params=params, headers=headers, format=format)
        if cancel is None:
            return await call
        return await cancel.guard(call)

    # ─── Lifecycle ───────────────────────────────────────────────────

    async def close(self) -> None:
        if self._session and not self._session.closed:
            self._log.debug("Closing HTTP session")
            await self._session.close()

    async def __aenter__(self) -> HttpClient:
        await self._ensure_session()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()


def _encode_params(params: Params | None) -> dict[str, str] | None:
    """aiohttp only accepts str/int/float query values; booleans go lowercase."""
    if not params:
        return None
    encoded: dict[str, str] = {}
    for key, value in params.items():
        match value:
            case None:
                continue
            case bool():
                encoded[key] = "true" if value else "false"
            case _:
                encoded[key] = str(value)
    return encoded
