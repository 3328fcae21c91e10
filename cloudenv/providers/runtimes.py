"""Lifecycle operations for runtimes (Jupyter, RStudio, JupyterLab VMs)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, assert_never

from cloudenv.api.model import AUTO_CREATED_LABEL, ResourceErrorInfo, Runtime
from cloudenv.errors import classify_errors
from cloudenv.exceptions import UnsupportedOperation
from cloudenv.infra.cancel import CancelToken
from cloudenv.observability.logger import logger

from .leonardo import LeonardoClient, parse_runtime
from .provider import (
    AzurePlacement,
    Filters,
    GcpPlacement,
    Placement,
    delete_idempotently,
    require_workspace,
)
from .storage import StorageClient

GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)


class RuntimeProvider:
    def __init__(self, leonardo: LeonardoClient, storage: StorageClient) -> None:
        self._leo = leonardo
        self._storage = storage
        self._log = logger.bind(component="runtimes")

    async def list(self, filters: Filters | None = None, *, cancel: CancelToken | None = None) -> Sequence[Runtime]:
        raw = await self._leo.list_runtimes(dict(filters or {}), cancel=cancel)
        return tuple(parse_runtime(r) for r in raw)

    async def details(self, runtime: Runtime, *, cancel: CancelToken | None = None) -> Runtime:
        """Fresh record including errors and the staging bucket."""
        match runtime.cloud_provider:
            case "GCP":
                raw = await self._leo.get_runtime(runtime.cloud_context.resource, runtime.name, cancel=cancel)
            case "AZURE":
                workspace_id = require_workspace(runtime.workspace_id, f"Runtime {runtime.name}")
                raw = await self._leo.get_runtime_v2(workspace_id, runtime.name, cancel=cancel)
            case _:
                assert_never(runtime.cloud_provider)
        return parse_runtime(raw)

    async def error_info(self, runtime: Runtime, *, cancel: CancelToken | None = None) -> ResourceErrorInfo:
        fresh = await self.details(runtime, cancel=cancel)

        async def fetch(project: str, bucket: str, name: str) -> str:
            return await self._storage.get_object_preview(project, bucket, name, full=True, cancel=cancel)

        return await classify_errors(fresh, fetch)

    async def create(
        self,
        placement: Placement,
        name: str,
        request: Mapping[str, Any],
        *,
        labels: Mapping[str, str] | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        """Ask Leonardo for a new runtime.

        ``request`` carries the runtime config, tool image and disk settings
        in Leonardo's shape; auto-created labels are added here.
        """
        body: dict[str, Any] = {
            **request,
            "labels": {**request.get("labels", {}), **(labels or {}), AUTO_CREATED_LABEL: "true"},
        }
        match placement:
            case GcpPlacement(google_project=project):
                body.setdefault("scopes", list(GOOGLE_SCOPES))
                body.setdefault("enableWelder", True)
                await self._leo.create_runtime(project, name, body, cancel=cancel)
            case AzurePlacement(workspace_id=workspace_id):
                await self._leo.create_runtime_v2(workspace_id, name, body, cancel=cancel)
            case _:
                assert_never(placement)
        self._log.info("Requested runtime {name}", name=name)

    async def update(
        self, runtime: Runtime, request: Mapping[str, Any], *, cancel: CancelToken | None = None
    ) -> None:
        match runtime.cloud_provider:
            case "GCP":
                await self._leo.update_runtime(runtime.cloud_context.resource, runtime.name, dict(request), cancel=cancel)
            case "AZURE":
                raise UnsupportedOperation("Azure runtimes cannot be updated in place")
            case _:
                assert_never(runtime.cloud_provider)

    async def start(self, runtime: Runtime, *, cancel: CancelToken | None = None) -> None:
        match runtime.cloud_provider:
            case "GCP":
                await self._leo.start_runtime(runtime.cloud_context.resource, runtime.name, cancel=cancel)
            case "AZURE":
                workspace_id = require_workspace(runtime.workspace_id, f"Runtime {runtime.name}")
                await self._leo.start_runtime_v2(workspace_id, runtime.name, cancel=cancel)
            case _:
                assert_never(runtime.cloud_provider)

    async def stop(self, runtime: Runtime, *, cancel: CancelToken | None = None) -> None:
        match runtime.cloud_provider:
            case "GCP":
                await self._leo.stop_runtime(runtime.cloud_context.resource, runtime.name, cancel=cancel)
            case "AZURE":
                workspace_id = require_workspace(runtime.workspace_id, f"Runtime {runtime.name}")
                await self._leo.stop_runtime_v2(workspace_id, runtime.name, cancel=cancel)
            case _:
                assert_never(runtime.cloud_provider)

    async def delete(
        self,
        runtime: Runtime,
        *,
        delete_disk: bool = False,
        cancel: CancelToken | None = None,
    ) -> None:
        match runtime.cloud_provider:
            case "GCP":
                call = self._leo.delete_runtime(
                    runtime.cloud_context.resource, runtime.name, delete_disk=delete_disk, cancel=cancel,
                )
            case "AZURE":
                workspace_id = require_workspace(runtime.workspace_id, f"Runtime {runtime.name}")
                call = self._leo.delete_runtime_v2(workspace_id, runtime.name, delete_disk=delete_disk, cancel=cancel)
            case _:
                assert_never(runtime.cloud_provider)
        await delete_idempotently(call, f"Runtime {runtime.name}")
