from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import Any

from cloudenv.api.model import (
    APP_LABEL,
    TOOL_LABEL,
    WORKSPACE_NAME_LABEL,
    App,
    AuditInfo,
    CloudContext,
    CloudProvider,
    ComputeStatus,
    DiskStatus,
    GceConfig,
    KubernetesRuntimeConfig,
    PersistentDisk,
    ResourceError,
    Runtime,
    RuntimeConfig,
)

T0 = datetime(2024, 1, 1, tzinfo=UTC)


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def iso(minutes: int) -> str:
    return at(minutes).isoformat().replace("+00:00", "Z")


# ─── Record factories ────────────────────────────────────────────────


def make_runtime(
    name: str = "rt",
    *,
    status: ComputeStatus = "Running",
    created: int = 0,
    provider: CloudProvider = "GCP",
    resource: str = "proj",
    config: RuntimeConfig | None = None,
    tool: str | None = "Jupyter",
    staging_bucket: str | None = None,
    errors: tuple[ResourceError, ...] = (),
    workspace_id: str | None = None,
) -> Runtime:
    return Runtime(
        name=name,
        cloud_context=CloudContext(provider=provider, resource=resource),
        status=status,
        raw_status=status,
        audit_info=AuditInfo(creator="user@example.org", created_date=at(created)),
        runtime_config=config or GceConfig(machine_type="n1-standard-4", disk_size=50, zone="us-central1-a"),
        labels=MappingProxyType({TOOL_LABEL: tool} if tool else {}),
        workspace_id=workspace_id,
        staging_bucket=staging_bucket,
        errors=errors,
    )


def make_app(
    name: str = "app",
    app_type: str = "GALAXY",
    *,
    status: ComputeStatus = "Running",
    created: int = 0,
    provider: CloudProvider = "GCP",
    resource: str = "proj",
    disk_name: str | None = None,
    num_nodes: int | None = 1,
    machine_type: str = "n1-highmem-8",
    region: str = "us-central1",
    workspace_id: str | None = None,
    errors: tuple[ResourceError, ...] = (),
) -> App:
    return App(
        name=name,
        app_type=app_type,
        cloud_context=CloudContext(provider=provider, resource=resource),
        status=status,
        raw_status=status.upper(),
        audit_info=AuditInfo(creator="user@example.org", created_date=at(created)),
        kubernetes_runtime_config=(
            KubernetesRuntimeConfig(num_nodes=num_nodes, machine_type=machine_type)
            if num_nodes is not None else None
        ),
        disk_name=disk_name,
        region=region,
        workspace_id=workspace_id,
        errors=errors,
    )


def make_disk(
    name: str = "disk",
    *,
    id: int | None = None,
    status: DiskStatus = "Ready",
    created: int = 0,
    size: int = 50,
    app_type: Any = None,
    workspace: Any = "ws",
    provider: CloudProvider = "GCP",
    resource: str = "proj",
    zone: str = "us-central1-a",
    disk_type: str = "pd-standard",
    creator: str = "user@example.org",
    workspace_id: str | None = None,
) -> PersistentDisk:
    labels: dict[str, Any] = {}
    if app_type is not None:
        labels[APP_LABEL] = app_type
    if workspace is not None:
        labels[WORKSPACE_NAME_LABEL] = workspace
    return PersistentDisk(
        name=name,
        id=id,
        cloud_context=CloudContext(provider=provider, resource=resource),
        size=size,
        status=status,
        audit_info=AuditInfo(creator=creator, created_date=at(created)),
        disk_type=disk_type,
        zone=zone,
        labels=MappingProxyType(labels),
        workspace_id=workspace_id,
    )


# ─── Leonardo JSON factories ─────────────────────────────────────────


def runtime_json(
    name: str = "rt",
    *,
    status: str = "Running",
    created: int = 0,
    provider: str = "GCP",
    resource: str = "proj",
    runtime_config: dict[str, Any] | None = None,
    errors: list[dict[str, Any]] | None = None,
    staging_bucket: str | None = None,
    workspace_id: str | None = None,
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": 1,
        "runtimeName": name,
        "cloudContext": {"cloudProvider": provider, "cloudResource": resource},
        "status": status,
        "auditInfo": {"creator": "user@example.org", "createdDate": iso(created)},
        "runtimeConfig": runtime_config or {
            "cloudService": "GCE",
            "machineType": "n1-standard-4",
            "diskSize": 50,
            "zone": "us-central1-a",
        },
        "labels": {"tool": "Jupyter"},
        "errors": errors or [],
    }
    if staging_bucket:
        raw["asyncRuntimeFields"] = {"stagingBucket": staging_bucket}
    if workspace_id:
        raw["workspaceId"] = workspace_id
    return raw


def app_json(
    name: str = "app",
    app_type: str = "GALAXY",
    *,
    status: str = "RUNNING",
    created: int = 0,
    provider: str = "GCP",
    resource: str = "proj",
    disk_name: str | None = None,
    errors: list[dict[str, Any]] | None = None,
    workspace_id: str | None = None,
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "appName": name,
        "appType": app_type,
        "cloudContext": {"cloudProvider": provider, "cloudResource": resource},
        "status": status,
        "auditInfo": {"creator": "user@example.org", "createdDate": iso(created)},
        "kubernetesRuntimeConfig": {"numNodes": 1, "machineType": "n1-highmem-8", "autoscalingEnabled": False},
        "region": "us-central1",
        "errors": errors or [],
    }
    if disk_name:
        raw["diskName"] = disk_name
    if workspace_id:
        raw["workspaceId"] = workspace_id
    return raw


def disk_json(
    name: str = "disk",
    *,
    id: int = 7,
    status: str = "Ready",
    created: int = 0,
    provider: str = "GCP",
    resource: str = "proj",
    labels: dict[str, Any] | None = None,
    workspace_id: str | None = None,
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": id,
        "name": name,
        "cloudContext": {"cloudProvider": provider, "cloudResource": resource},
        "size": 50,
        "status": status,
        "diskType": "pd-standard",
        "zone": "us-central1-a",
        "auditInfo": {"creator": "user@example.org", "createdDate": iso(created)},
        "labels": labels or {},
    }
    if workspace_id:
        raw["workspaceId"] = workspace_id
    return raw
