"""Leonardo JSON -> immutable records.

Pure functions. Statuses are normalized here and the raw value is kept on
the record; labels are frozen into read-only mappings.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, cast

from cloudenv.api.model import (
    CLOUD_PROVIDERS,
    App,
    AuditInfo,
    AzureConfig,
    CloudContext,
    CloudProvider,
    DataprocConfig,
    GceConfig,
    GceWithPdConfig,
    GpuConfig,
    KubernetesRuntimeConfig,
    PersistentDisk,
    ResourceError,
    Runtime,
    RuntimeConfig,
)
from cloudenv.api.status import normalize_disk_status, normalize_status
from cloudenv.exceptions import ControlPlaneError
from cloudenv.providers.leonardo.types import (
    AppResponse,
    AuditInfoResponse,
    CloudContextResponse,
    DiskResponse,
    GpuConfigResponse,
    LeoErrorResponse,
    RuntimeConfigResponse,
    RuntimeResponse,
)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _freeze(raw: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(raw or {}))


def parse_cloud_context(raw: CloudContextResponse) -> CloudContext:
    provider = str(raw.get("cloudProvider", "")).upper()
    if provider not in CLOUD_PROVIDERS:
        raise ControlPlaneError(f"Unknown cloud provider: {raw.get('cloudProvider')!r}")
    return CloudContext(provider=cast(CloudProvider, provider), resource=raw.get("cloudResource", ""))


def parse_audit_info(raw: AuditInfoResponse) -> AuditInfo:
    return AuditInfo(
        creator=raw.get("creator", ""),
        created_date=parse_datetime(raw.get("createdDate")) or EPOCH,
        destroyed_date=parse_datetime(raw.get("destroyedDate")),
        date_accessed=parse_datetime(raw.get("dateAccessed")),
    )


def parse_errors(raw: list[LeoErrorResponse] | None) -> tuple[ResourceError, ...]:
    return tuple(
        ResourceError(
            message=e.get("errorMessage", ""),
            code=e.get("errorCode", e.get("googleErrorCode")),
            timestamp=e.get("timestamp", ""),
        )
        for e in raw or ()
    )


def _gpu(raw: GpuConfigResponse | None) -> GpuConfig | None:
    if not raw:
        return None
    return GpuConfig(gpu_type=raw["gpuType"], num_gpus=raw.get("numOfGpus", 1))


def parse_runtime_config(raw: RuntimeConfigResponse) -> RuntimeConfig:
    match raw.get("cloudService"):
        case "DATAPROC":
            return DataprocConfig(
                master_machine_type=raw.get("masterMachineType", ""),
                master_disk_size=raw.get("masterDiskSize") or 0,
                region=raw.get("region") or "",
                number_of_workers=raw.get("numberOfWorkers") or 0,
                worker_machine_type=raw.get("workerMachineType"),
                worker_disk_size=raw.get("workerDiskSize"),
                number_of_preemptible_workers=raw.get("numberOfPreemptibleWorkers") or 0,
                component_gateway_enabled=raw.get("componentGatewayEnabled", False),
                worker_private_access=raw.get("workerPrivateAccess", False),
            )
        case "AZURE_VM":
            return AzureConfig(
                machine_type=raw.get("machineType", ""),
                persistent_disk_id=raw.get("persistentDiskId"),
                region=raw.get("region"),
            )
        case "GCE" if raw.get("persistentDiskId") is not None and raw.get("bootDiskSize") is not None:
            return GceWithPdConfig(
                machine_type=raw.get("machineType", ""),
                persistent_disk_id=cast(int, raw.get("persistentDiskId")),
                boot_disk_size=raw.get("bootDiskSize", 0),
                zone=raw.get("zone", ""),
                gpu_config=_gpu(raw.get("gpuConfig")),
            )
        case "GCE":
            return GceConfig(
                machine_type=raw.get("machineType", ""),
                disk_size=raw.get("diskSize") or 0,
                zone=raw.get("zone", ""),
                boot_disk_size=raw.get("bootDiskSize"),
                gpu_config=_gpu(raw.get("gpuConfig")),
            )
        case other:
            raise ControlPlaneError(f"Unknown cloud service: {other!r}")


def parse_runtime(raw: RuntimeResponse) -> Runtime:
    async_fields = raw.get("asyncRuntimeFields") or {}
    return Runtime(
        name=raw["runtimeName"],
        id=raw.get("id"),
        cloud_context=parse_cloud_context(raw["cloudContext"]),
        status=normalize_status(raw.get("status")),
        raw_status=raw.get("status", ""),
        audit_info=parse_audit_info(raw["auditInfo"]),
        runtime_config=parse_runtime_config(raw["runtimeConfig"]),
        labels=_freeze(raw.get("labels")),
        workspace_id=raw.get("workspaceId"),
        staging_bucket=async_fields.get("stagingBucket"),
        errors=parse_errors(raw.get("errors")),
        patch_in_progress=raw.get("patchInProgress", False),
        proxy_url=raw.get("proxyUrl"),
    )


def parse_app(raw: AppResponse) -> App:
    k8s = raw.get("kubernetesRuntimeConfig")
    return App(
        name=raw["appName"],
        app_type=raw.get("appType", "").upper(),
        cloud_context=parse_cloud_context(raw["cloudContext"]),
        status=normalize_status(raw.get("status")),
        raw_status=raw.get("status", ""),
        audit_info=parse_audit_info(raw["auditInfo"]),
        kubernetes_runtime_config=KubernetesRuntimeConfig(
            num_nodes=k8s.get("numNodes", 0),
            machine_type=k8s.get("machineType", ""),
            autoscaling_enabled=k8s.get("autoscalingEnabled", False),
        ) if k8s else None,
        disk_name=raw.get("diskName") or None,
        labels=_freeze(raw.get("labels")),
        workspace_id=raw.get("workspaceId"),
        region=raw.get("region", ""),
        errors=parse_errors(raw.get("errors")),
        proxy_urls=_freeze(raw.get("proxyUrls")),
        access_scope=raw.get("accessScope"),
    )


def parse_disk(raw: DiskResponse) -> PersistentDisk:
    return PersistentDisk(
        name=raw["name"],
        id=raw.get("id"),
        cloud_context=parse_cloud_context(raw["cloudContext"]),
        size=raw.get("size", 0),
        status=normalize_disk_status(raw.get("status")),
        audit_info=parse_audit_info(raw["auditInfo"]),
        disk_type=raw.get("diskType", "pd-standard"),
        zone=raw.get("zone", ""),
        labels=_freeze(raw.get("labels")),
        workspace_id=raw.get("workspaceId"),
    )
