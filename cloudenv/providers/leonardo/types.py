"""Leonardo API response and request types.

TypedDicts for the JSON the control plane exchanges; parsing into the
immutable records of ``cloudenv.api.model`` happens in ``parse``.
"""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict

# =============================================================================
# Shared
# =============================================================================


class CloudContextResponse(TypedDict):
    cloudProvider: str  # GCP, AZURE
    cloudResource: str


class AuditInfoResponse(TypedDict):
    creator: str
    createdDate: str
    destroyedDate: NotRequired[str | None]
    dateAccessed: NotRequired[str | None]


class LeoErrorResponse(TypedDict):
    errorMessage: str
    timestamp: NotRequired[str]
    errorCode: NotRequired[int | None]
    googleErrorCode: NotRequired[int | None]
    action: NotRequired[str]
    source: NotRequired[str]
    traceId: NotRequired[str | None]


# =============================================================================
# Runtimes
# =============================================================================


class GpuConfigResponse(TypedDict):
    gpuType: str
    numOfGpus: int


class RuntimeConfigResponse(TypedDict):
    """Union of the GCE, GCE-with-PD, Dataproc and Azure VM shapes."""

    cloudService: str  # GCE, DATAPROC, AZURE_VM
    machineType: NotRequired[str]
    diskSize: NotRequired[int]
    bootDiskSize: NotRequired[int]
    persistentDiskId: NotRequired[int | None]
    zone: NotRequired[str]
    gpuConfig: NotRequired[GpuConfigResponse | None]
    region: NotRequired[str | None]
    masterMachineType: NotRequired[str]
    masterDiskSize: NotRequired[int]
    numberOfWorkers: NotRequired[int]
    workerMachineType: NotRequired[str | None]
    workerDiskSize: NotRequired[int | None]
    numberOfPreemptibleWorkers: NotRequired[int | None]
    componentGatewayEnabled: NotRequired[bool]
    workerPrivateAccess: NotRequired[bool]


class AsyncRuntimeFieldsResponse(TypedDict):
    googleId: NotRequired[str]
    operationName: NotRequired[str]
    stagingBucket: NotRequired[str]
    hostIp: NotRequired[str | None]


class RuntimeResponse(TypedDict):
    """List item and details response; details add errors and async fields."""

    id: NotRequired[int]
    runtimeName: str
    googleProject: NotRequired[str]
    cloudContext: CloudContextResponse
    auditInfo: AuditInfoResponse
    runtimeConfig: RuntimeConfigResponse
    status: str
    labels: NotRequired[dict[str, Any]]
    patchInProgress: NotRequired[bool]
    workspaceId: NotRequired[str | None]
    proxyUrl: NotRequired[str | None]
    errors: NotRequired[list[LeoErrorResponse]]
    asyncRuntimeFields: NotRequired[AsyncRuntimeFieldsResponse | None]


# =============================================================================
# Apps
# =============================================================================


class KubernetesRuntimeConfigResponse(TypedDict):
    numNodes: int
    machineType: str
    autoscalingEnabled: NotRequired[bool]


class AppResponse(TypedDict):
    appName: str
    appType: str
    cloudContext: CloudContextResponse
    status: str
    auditInfo: AuditInfoResponse
    kubernetesRuntimeConfig: NotRequired[KubernetesRuntimeConfigResponse | None]
    diskName: NotRequired[str | None]
    errors: NotRequired[list[LeoErrorResponse]]
    proxyUrls: NotRequired[dict[str, str]]
    labels: NotRequired[dict[str, Any]]
    region: NotRequired[str]
    workspaceId: NotRequired[str | None]
    accessScope: NotRequired[str | None]


# =============================================================================
# Disks
# =============================================================================


class DiskResponse(TypedDict):
    id: int
    name: str
    cloudContext: CloudContextResponse
    zone: NotRequired[str]
    size: int
    status: str
    auditInfo: AuditInfoResponse
    diskType: NotRequired[str]
    labels: NotRequired[dict[str, Any]]
    workspaceId: NotRequired[str | None]


# =============================================================================
# Requests
# =============================================================================


class DiskConfigRequest(TypedDict):
    name: str
    size: int
    diskType: NotRequired[str]
    labels: dict[str, str]


class CreateAppRequest(TypedDict):
    appType: str
    labels: dict[str, str]
    kubernetesRuntimeConfig: NotRequired[KubernetesRuntimeConfigResponse]
    diskConfig: NotRequired[DiskConfigRequest]
    customEnvironmentVariables: NotRequired[dict[str, str]]
    accessScope: NotRequired[str]
