"""Async HTTP client for the Leonardo control plane.

Mirrors Leonardo's endpoints one to one and returns TypedDicts; choosing
between the GCP (v1, keyed by google project) and Azure (v2, keyed by
workspace id) endpoints is left to the providers.
"""

from __future__ import annotations

from typing import Any

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from cloudenv.api.model import AUTO_CREATED_LABEL
from cloudenv.exceptions import ControlPlaneError
from cloudenv.infra.cancel import CancelToken
from cloudenv.infra.http import Auth, HttpClient, HttpError
from cloudenv.observability.logger import logger

from .types import AppResponse, CreateAppRequest, DiskResponse, RuntimeResponse

RETRY_STATUSES = frozenset({429, 503})
RETRY_ATTEMPTS = 3


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ControlPlaneError) and exc.status in RETRY_STATUSES


def _auto_created(labels: dict[str, Any] | None) -> dict[str, Any]:
    return {AUTO_CREATED_LABEL: True, **(labels or {})}


class LeonardoClient:
    """Async HTTP client for Leonardo.

    GETs are retried on 429/503 with exponential backoff; writes are sent
    once. Every failure surfaces as :class:`ControlPlaneError`.

    Example:
        async with LeonardoClient("https://leonardo.example.org", BearerAuth(token)) as leo:
            runtimes = await leo.list_runtimes({"saturnWorkspaceName": "ws"})
    """

    def __init__(
        self,
        base_url: str,
        auth: Auth | None = None,
        *,
        timeout: float = 60,
        retry_backoff: float = 1.0,
    ) -> None:
        self._log = logger.bind(component="leonardo")
        self._http = HttpClient(
            base_url,
            auth,
            timeout=timeout,
            default_headers={"Content-Type": "application/json", "X-App-ID": "Saturn"},
        )
        self._retry_backoff = retry_backoff

    async def __aenter__(self) -> LeonardoClient:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> Any:
        try:
            return await self._http.request(method, path, json=json, params=params, cancel=cancel)
        except HttpError as e:
            self._log.warning(
                "API error {method} {path}: {status}",
                method=method, path=path, status=e.status,
            )
            raise ControlPlaneError(f"API error {e.status}: {e.body}", status=e.status, body=e.body) from e

    async def _get(self, path: str, *, params: dict[str, Any] | None = None, cancel: CancelToken | None = None) -> Any:
        send = retry(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(RETRY_ATTEMPTS),
            wait=wait_exponential(multiplier=self._retry_backoff, max=10),
            reraise=True,
        )(self._request)
        return await send("GET", path, params=params, cancel=cancel)

    # =========================================================================
    # Runtimes
    # =========================================================================

    async def list_runtimes(
        self, labels: dict[str, Any] | None = None, *, cancel: CancelToken | None = None
    ) -> list[RuntimeResponse]:
        """All auto-created runtimes the caller can see, on every cloud."""
        result: list[RuntimeResponse] | None = await self._get(
            "api/v2/runtimes", params=_auto_created(labels), cancel=cancel,
        )
        return result or []

    async def get_runtime(self, project: str, name: str, *, cancel: CancelToken | None = None) -> RuntimeResponse:
        return await self._get(f"api/google/v1/runtimes/{project}/{name}", cancel=cancel)

    async def get_runtime_v2(
        self, workspace_id: str, name: str, *, cancel: CancelToken | None = None
    ) -> RuntimeResponse:
        return await self._get(f"api/v2/runtimes/{workspace_id}/azure/{name}", cancel=cancel)

    async def create_runtime(
        self, project: str, name: str, body: dict[str, Any], *, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Creating runtime {project}/{name}", project=project, name=name)
        await self._request("POST", f"api/google/v1/runtimes/{project}/{name}", json=body, cancel=cancel)

    async def create_runtime_v2(
        self, workspace_id: str, name: str, body: dict[str, Any], *, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Creating Azure runtime {workspace}/{name}", workspace=workspace_id, name=name)
        await self._request("POST", f"api/v2/runtimes/{workspace_id}/azure/{name}", json=body, cancel=cancel)

    async def update_runtime(
        self, project: str, name: str, body: dict[str, Any], *, cancel: CancelToken | None = None
    ) -> None:
        await self._request(
            "PATCH", f"api/google/v1/runtimes/{project}/{name}",
            json={**body, "allowStop": True}, cancel=cancel,
        )

    async def start_runtime(self, project: str, name: str, *, cancel: CancelToken | None = None) -> None:
        await self._request("POST", f"api/google/v1/runtimes/{project}/{name}/start", cancel=cancel)

    async def stop_runtime(self, project: str, name: str, *, cancel: CancelToken | None = None) -> None:
        await self._request("POST", f"api/google/v1/runtimes/{project}/{name}/stop", cancel=cancel)

    async def start_runtime_v2(self, workspace_id: str, name: str, *, cancel: CancelToken | None = None) -> None:
        await self._request("POST", f"api/v2/runtimes/{workspace_id}/{name}/start", cancel=cancel)

    async def stop_runtime_v2(self, workspace_id: str, name: str, *, cancel: CancelToken | None = None) -> None:
        await self._request("POST", f"api/v2/runtimes/{workspace_id}/{name}/stop", cancel=cancel)

    async def delete_runtime(
        self, project: str, name: str, *, delete_disk: bool, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Deleting runtime {project}/{name}", project=project, name=name)
        await self._request(
            "DELETE", f"api/google/v1/runtimes/{project}/{name}",
            params={"deleteDisk": delete_disk}, cancel=cancel,
        )

    async def delete_runtime_v2(
        self, workspace_id: str, name: str, *, delete_disk: bool, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Deleting Azure runtime {workspace}/{name}", workspace=workspace_id, name=name)
        await self._request(
            "DELETE", f"api/v2/runtimes/{workspace_id}/azure/{name}",
            params={"deleteDisk": delete_disk}, cancel=cancel,
        )

    # =========================================================================
    # Apps
    # =========================================================================

    async def list_apps(
        self, labels: dict[str, Any] | None = None, *, cancel: CancelToken | None = None
    ) -> list[AppResponse]:
        result: list[AppResponse] | None = await self._get(
            "api/google/v1/apps", params=_auto_created(labels), cancel=cancel,
        )
        return result or []

    async def list_apps_v2(
        self, workspace_id: str, labels: dict[str, Any] | None = None, *, cancel: CancelToken | None = None
    ) -> list[AppResponse]:
        result: list[AppResponse] | None = await self._get(
            f"api/apps/v2/{workspace_id}", params=labels, cancel=cancel,
        )
        return result or []

    async def get_app(self, project: str, name: str, *, cancel: CancelToken | None = None) -> AppResponse:
        return await self._get(f"api/google/v1/apps/{project}/{name}", cancel=cancel)

    async def get_app_v2(self, workspace_id: str, name: str, *, cancel: CancelToken | None = None) -> AppResponse:
        return await self._get(f"api/apps/v2/{workspace_id}/{name}", cancel=cancel)

    async def create_app(
        self, project: str, name: str, body: CreateAppRequest, *, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Creating app {project}/{name}", project=project, name=name)
        await self._request("POST", f"api/google/v1/apps/{project}/{name}", json=dict(body), cancel=cancel)

    async def create_app_v2(
        self, workspace_id: str, name: str, body: CreateAppRequest, *, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Creating Azure app {workspace}/{name}", workspace=workspace_id, name=name)
        await self._request("POST", f"api/apps/v2/{workspace_id}/{name}", json=dict(body), cancel=cancel)

    async def stop_app(self, project: str, name: str, *, cancel: CancelToken | None = None) -> None:
        await self._request("POST", f"api/google/v1/apps/{project}/{name}/stop", cancel=cancel)

    async def start_app(self, project: str, name: str, *, cancel: CancelToken | None = None) -> None:
        await self._request("POST", f"api/google/v1/apps/{project}/{name}/start", cancel=cancel)

    async def delete_app(
        self, project: str, name: str, *, delete_disk: bool, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Deleting app {project}/{name}", project=project, name=name)
        await self._request(
            "DELETE", f"api/google/v1/apps/{project}/{name}",
            params={"deleteDisk": delete_disk}, cancel=cancel,
        )

    async def delete_app_v2(
        self, workspace_id: str, name: str, *, delete_disk: bool, cancel: CancelToken | None = None
    ) -> None:
        self._log.debug("Deleting Azure app {workspace}/{name}", workspace=workspace_id, name=name)
        await self._request(
            "DELETE", f"api/apps/v2/{workspace_id}/{name}",
            params={"deleteDisk": delete_disk}, cancel=cancel,
        )

    # =========================================================================
    # Disks
    # =========================================================================

    async def list_disks(
        self, labels: dict[str, Any] | None = None, *, cancel: CancelToken | None = None
    ) -> list[DiskResponse]:
        result: list[DiskResponse] | None = await self._get(
            "api/google/v1/disks", params=_auto_created(labels), cancel=cancel,
        )
        return result or []

    async def get_disk(self, project: str, name: str, *, cancel: CancelToken | None = None) -> DiskResponse:
        return await self._get(f"api/google/v1/disks/{project}/{name}", cancel=cancel)

    async def get_disk_v2(
        self, workspace_id: str, disk_id: int, *, cancel: CancelToken | None = None
    ) -> DiskResponse:
        return await self._get(f"api/v2/disks/{workspace_id}/{disk_id}", cancel=cancel)

    async def delete_disk(self, project: str, name: str, *, cancel: CancelToken | None = None) -> None:
        self._log.debug("Deleting disk {project}/{name}", project=project, name=name)
        await self._request("DELETE", f"api/google/v1/disks/{project}/{name}", cancel=cancel)

    async def delete_disk_v2(self, workspace_id: str, disk_id: int, *, cancel: CancelToken | None = None) -> None:
        self._log.debug("Deleting Azure disk {workspace}/{disk_id}", workspace=workspace_id, disk_id=disk_id)
        await self._request("DELETE", f"api/v2/disks/{workspace_id}/{disk_id}", cancel=cancel)
