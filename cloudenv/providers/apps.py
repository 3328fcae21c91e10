"""Lifecycle operations for Kubernetes apps (Galaxy, Cromwell, Hail Batch, ...)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import assert_never

from cloudenv.api.model import (
    APP_LABEL,
    AUTO_CREATED_LABEL,
    WORKSPACE_NAME_LABEL,
    WORKSPACE_NAMESPACE_LABEL,
    App,
    ErrorList,
    KubernetesRuntimeConfig,
    ResourceErrorInfo,
)
from cloudenv.constants import DEFAULT_DATA_DISK_SIZE
from cloudenv.exceptions import UnsupportedOperation
from cloudenv.infra.cancel import CancelToken
from cloudenv.observability.logger import logger

from .leonardo import LeonardoClient, parse_app
from .leonardo.types import CreateAppRequest
from .provider import (
    AzurePlacement,
    Filters,
    GcpPlacement,
    Placement,
    delete_idempotently,
    require_workspace,
)


class AppProvider:
    def __init__(self, leonardo: LeonardoClient) -> None:
        self._leo = leonardo
        self._log = logger.bind(component="apps")

    async def list(self, filters: Filters | None = None, *, cancel: CancelToken | None = None) -> Sequence[App]:
        raw = await self._leo.list_apps(dict(filters or {}), cancel=cancel)
        return tuple(parse_app(a) for a in raw)

    async def list_for_workspace(
        self, workspace_id: str, filters: Filters | None = None, *, cancel: CancelToken | None = None
    ) -> Sequence[App]:
        """Apps of one Azure workspace."""
        raw = await self._leo.list_apps_v2(workspace_id, dict(filters or {}), cancel=cancel)
        return tuple(parse_app(a) for a in raw)

    async def details(self, app: App, *, cancel: CancelToken | None = None) -> App:
        match app.cloud_provider:
            case "GCP":
                raw = await self._leo.get_app(app.cloud_context.resource, app.name, cancel=cancel)
            case "AZURE":
                workspace_id = require_workspace(app.workspace_id, f"App {app.name}")
                raw = await self._leo.get_app_v2(workspace_id, app.name, cancel=cancel)
            case _:
                assert_never(app.cloud_provider)
        return parse_app(raw)

    async def error_info(self, app: App, *, cancel: CancelToken | None = None) -> ResourceErrorInfo:
        """Apps never run user scripts, so this is always the plain error list."""
        fresh = await self.details(app, cancel=cancel)
        return ErrorList(fresh.errors)

    async def create(
        self,
        placement: Placement,
        name: str,
        app_type: str,
        *,
        workspace_name: str,
        workspace_namespace: str,
        bucket_name: str | None = None,
        kubernetes_runtime_config: KubernetesRuntimeConfig | None = None,
        disk_name: str | None = None,
        disk_size: int = DEFAULT_DATA_DISK_SIZE,
        disk_type: str = "pd-standard",
        access_scope: str | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        app_type = app_type.upper()
        match placement:
            case GcpPlacement(google_project=project):
                body: CreateAppRequest = {
                    "appType": app_type,
                    "labels": {
                        WORKSPACE_NAMESPACE_LABEL: workspace_namespace,
                        WORKSPACE_NAME_LABEL: workspace_name,
                        AUTO_CREATED_LABEL: "true",
                    },
                    "customEnvironmentVariables": {
                        "WORKSPACE_NAME": workspace_name,
                        "WORKSPACE_NAMESPACE": workspace_namespace,
                        "WORKSPACE_BUCKET": f"gs://{bucket_name}" if bucket_name else "",
                        "GOOGLE_PROJECT": project,
                    },
                }
                if kubernetes_runtime_config is not None:
                    body["kubernetesRuntimeConfig"] = {
                        "numNodes": kubernetes_runtime_config.num_nodes,
                        "machineType": kubernetes_runtime_config.machine_type,
                        "autoscalingEnabled": kubernetes_runtime_config.autoscaling_enabled,
                    }
                if disk_name:
                    body["diskConfig"] = {
                        "name": disk_name,
                        "size": disk_size,
                        "diskType": disk_type,
                        "labels": {
                            APP_LABEL: app_type,
                            WORKSPACE_NAMESPACE_LABEL: workspace_namespace,
                            WORKSPACE_NAME_LABEL: workspace_name,
                        },
                    }
                await self._leo.create_app(project, name, body, cancel=cancel)
            case AzurePlacement(workspace_id=workspace_id):
                body = {"appType": app_type, "labels": {AUTO_CREATED_LABEL: "true"}}
                if access_scope:
                    body["accessScope"] = access_scope
                await self._leo.create_app_v2(workspace_id, name, body, cancel=cancel)
            case _:
                assert_never(placement)
        self._log.info("Requested {app_type} app {name}", app_type=app_type, name=name)

    async def stop(self, app: App, *, cancel: CancelToken | None = None) -> None:
        """Pause an app. Only GCP apps can be paused."""
        match app.cloud_provider:
            case "GCP":
                await self._leo.stop_app(app.cloud_context.resource, app.name, cancel=cancel)
            case "AZURE":
                raise UnsupportedOperation(f"Pausing is not supported for Azure app {app.name}")
            case _:
                assert_never(app.cloud_provider)

    async def start(self, app: App, *, cancel: CancelToken | None = None) -> None:
        match app.cloud_provider:
            case "GCP":
                await self._leo.start_app(app.cloud_context.resource, app.name, cancel=cancel)
            case "AZURE":
                raise UnsupportedOperation(f"Resuming is not supported for Azure app {app.name}")
            case _:
                assert_never(app.cloud_provider)

    async def delete(
        self,
        app: App,
        *,
        delete_disk: bool = False,
        cancel: CancelToken | None = None,
    ) -> None:
        match app.cloud_provider:
            case "GCP":
                call = self._leo.delete_app(app.cloud_context.resource, app.name, delete_disk=delete_disk, cancel=cancel)
            case "AZURE":
                workspace_id = require_workspace(app.workspace_id, f"App {app.name}")
                call = self._leo.delete_app_v2(workspace_id, app.name, delete_disk=delete_disk, cancel=cancel)
            case _:
                assert_never(app.cloud_provider)
        await delete_idempotently(call, f"App {app.name}")
