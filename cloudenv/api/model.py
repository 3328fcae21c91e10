"""Records observed from the control plane.

Everything here is immutable. The client never fabricates these records;
they are parsed from Leonardo responses (see ``cloudenv.providers.leonardo``)
and "current" views are always derived from them, never stored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Literal

type CloudProvider = Literal["GCP", "AZURE"]

type ComputeStatus = Literal[
    "Creating",
    "Starting",
    "Running",
    "Updating",
    "Stopping",
    "Stopped",
    "Deleting",
    "Error",
    "Unknown",
]

type DiskStatus = Literal["Creating", "Restoring", "Ready", "Deleting", "Failed", "Unknown"]

type CloudService = Literal["GCE", "DATAPROC", "AZURE_VM"]

type ToolLabel = Literal["Jupyter", "RStudio", "JupyterLab"]

type AppType = Literal[
    "GALAXY",
    "CROMWELL",
    "HAIL_BATCH",
    "WORKFLOWS_APP",
    "CROMWELL_RUNNER_APP",
    "WDS",
    "ALLOWED",
    "CUSTOM",
]

CLOUD_PROVIDERS: tuple[CloudProvider, ...] = ("GCP", "AZURE")
APP_TYPES: tuple[AppType, ...] = (
    "GALAXY",
    "CROMWELL",
    "HAIL_BATCH",
    "WORKFLOWS_APP",
    "CROMWELL_RUNNER_APP",
    "WDS",
    "ALLOWED",
    "CUSTOM",
)
RUNTIME_TOOLS: tuple[ToolLabel, ...] = ("Jupyter", "RStudio", "JupyterLab")

# Label keys written by the workspace UI on every resource it creates.
APP_LABEL = "saturnApplication"
WORKSPACE_NAME_LABEL = "saturnWorkspaceName"
WORKSPACE_NAMESPACE_LABEL = "saturnWorkspaceNamespace"
AUTO_CREATED_LABEL = "saturnAutoCreated"
TOOL_LABEL = "tool"

EMPTY_LABELS: Mapping[str, Any] = MappingProxyType({})


def zone_to_region(zone: str) -> str:
    """``us-central1-a`` -> ``us-central1``. Values that are not zones pass through."""
    parts = zone.strip().lower().split("-")
    if len(parts) >= 3 and len(parts[-1]) == 1:
        return "-".join(parts[:-1])
    return "-".join(parts)


# =============================================================================
# Shared pieces
# =============================================================================


@dataclass(frozen=True, slots=True)
class CloudContext:
    """Where a resource lives: a Google project, or an Azure managed resource group."""

    provider: CloudProvider
    resource: str


@dataclass(frozen=True, slots=True)
class AuditInfo:
    creator: str
    created_date: datetime
    destroyed_date: datetime | None = None
    date_accessed: datetime | None = None


@dataclass(frozen=True, slots=True)
class ResourceError:
    message: str
    code: int | None = None
    timestamp: str = ""


# =============================================================================
# Runtime configurations
# =============================================================================


@dataclass(frozen=True, slots=True)
class GpuConfig:
    gpu_type: str
    num_gpus: int


@dataclass(frozen=True, slots=True)
class GceConfig:
    """Legacy GCE runtime whose data disk belongs to the VM itself."""

    machine_type: str
    disk_size: int
    zone: str
    boot_disk_size: int | None = None
    gpu_config: GpuConfig | None = None

    @property
    def cloud_service(self) -> CloudService:
        return "GCE"

    @property
    def region(self) -> str:
        return zone_to_region(self.zone)


@dataclass(frozen=True, slots=True)
class GceWithPdConfig:
    """GCE runtime with a separately billed persistent disk."""

    machine_type: str
    persistent_disk_id: int
    boot_disk_size: int
    zone: str
    gpu_config: GpuConfig | None = None

    @property
    def cloud_service(self) -> CloudService:
        return "GCE"

    @property
    def region(self) -> str:
        return zone_to_region(self.zone)


@dataclass(frozen=True, slots=True)
class DataprocConfig:
    master_machine_type: str
    master_disk_size: int
    region: str
    number_of_workers: int = 0
    worker_machine_type: str | None = None
    worker_disk_size: int | None = None
    number_of_preemptible_workers: int = 0
    component_gateway_enabled: bool = False
    worker_private_access: bool = False

    @property
    def cloud_service(self) -> CloudService:
        return "DATAPROC"


@dataclass(frozen=True, slots=True)
class AzureConfig:
    machine_type: str
    persistent_disk_id: int | None = None
    region: str | None = None

    @property
    def cloud_service(self) -> CloudService:
        return "AZURE_VM"


type GoogleRuntimeConfig = GceConfig | GceWithPdConfig | DataprocConfig
type RuntimeConfig = GoogleRuntimeConfig | AzureConfig


@dataclass(frozen=True, slots=True)
class KubernetesRuntimeConfig:
    num_nodes: int
    machine_type: str
    autoscaling_enabled: bool = False


# =============================================================================
# Compute resources
# =============================================================================


@dataclass(frozen=True, slots=True)
class Runtime:
    """A single-VM interactive environment (Jupyter, RStudio, JupyterLab)."""

    name: str
    cloud_context: CloudContext
    status: ComputeStatus
    audit_info: AuditInfo
    runtime_config: RuntimeConfig
    id: int | None = None
    raw_status: str = ""
    labels: Mapping[str, Any] = EMPTY_LABELS
    workspace_id: str | None = None
    staging_bucket: str | None = None
    errors: tuple[ResourceError, ...] = ()
    patch_in_progress: bool = False
    proxy_url: str | None = None

    @property
    def cloud_provider(self) -> CloudProvider:
        return self.cloud_context.provider

    @property
    def created_date(self) -> datetime:
        return self.audit_info.created_date

    @property
    def google_project(self) -> str | None:
        return self.cloud_context.resource if self.cloud_provider == "GCP" else None

    @property
    def tool(self) -> str | None:
        value = self.labels.get(TOOL_LABEL)
        return value if isinstance(value, str) and value else None

    @property
    def resource_type(self) -> str:
        return self.tool or ""

    @property
    def disk_name(self) -> str | None:
        return None

    @property
    def disk_id(self) -> int | None:
        match self.runtime_config:
            case GceWithPdConfig(persistent_disk_id=disk_id):
                return disk_id
            case AzureConfig(persistent_disk_id=disk_id):
                return disk_id
            case _:
                return None

    @property
    def region(self) -> str | None:
        return self.runtime_config.region


@dataclass(frozen=True, slots=True)
class App:
    """A Kubernetes-hosted application (Galaxy, Cromwell, Hail Batch, ...)."""

    name: str
    app_type: str
    cloud_context: CloudContext
    status: ComputeStatus
    audit_info: AuditInfo
    kubernetes_runtime_config: KubernetesRuntimeConfig | None = None
    raw_status: str = ""
    disk_name: str | None = None
    labels: Mapping[str, Any] = EMPTY_LABELS
    workspace_id: str | None = None
    region: str = ""
    errors: tuple[ResourceError, ...] = ()
    proxy_urls: Mapping[str, str] = EMPTY_LABELS
    access_scope: str | None = None

    @property
    def cloud_provider(self) -> CloudProvider:
        return self.cloud_context.provider

    @property
    def created_date(self) -> datetime:
        return self.audit_info.created_date

    @property
    def google_project(self) -> str | None:
        return self.cloud_context.resource if self.cloud_provider == "GCP" else None

    @property
    def resource_type(self) -> str:
        return self.app_type

    @property
    def disk_id(self) -> int | None:
        return None


type ComputeResource = Runtime | App


# =============================================================================
# Persistent disks
# =============================================================================


@dataclass(frozen=True, slots=True)
class PersistentDisk:
    name: str
    cloud_context: CloudContext
    size: int
    status: DiskStatus
    audit_info: AuditInfo
    id: int | None = None
    disk_type: str = "pd-standard"
    zone: str = ""
    labels: Mapping[str, Any] = EMPTY_LABELS
    workspace_id: str | None = None

    @property
    def cloud_provider(self) -> CloudProvider:
        return self.cloud_context.provider

    @property
    def created_date(self) -> datetime:
        return self.audit_info.created_date

    @property
    def region(self) -> str:
        return zone_to_region(self.zone)

    @property
    def app_type(self) -> str | None:
        """Application label, upper-cased (older disks carry ``galaxy``)."""
        value = self.labels.get(APP_LABEL)
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip().upper()

    @property
    def workspace_name(self) -> str | None:
        value = self.labels.get(WORKSPACE_NAME_LABEL)
        return value if isinstance(value, str) and value else None


# =============================================================================
# Error info
# =============================================================================


@dataclass(frozen=True, slots=True)
class ErrorList:
    errors: tuple[ResourceError, ...]


@dataclass(frozen=True, slots=True)
class UserScriptError:
    """A user startup script failed; ``detail`` is the raw script output."""

    detail: str


type ResourceErrorInfo = ErrorList | UserScriptError
