from cloudenv.api.model import (
    APP_TYPES,
    CLOUD_PROVIDERS,
    RUNTIME_TOOLS,
    App,
    AppType,
    AuditInfo,
    AzureConfig,
    CloudContext,
    CloudProvider,
    ComputeResource,
    ComputeStatus,
    DataprocConfig,
    DiskStatus,
    ErrorList,
    GceConfig,
    GceWithPdConfig,
    GpuConfig,
    KubernetesRuntimeConfig,
    PersistentDisk,
    ResourceError,
    ResourceErrorInfo,
    Runtime,
    RuntimeConfig,
    ToolLabel,
    UserScriptError,
    zone_to_region,
)
from cloudenv.api.status import normalize_disk_status, normalize_status

__all__ = [
    "APP_TYPES",
    "CLOUD_PROVIDERS",
    "RUNTIME_TOOLS",
    "App",
    "AppType",
    "AuditInfo",
    "AzureConfig",
    "CloudContext",
    "CloudProvider",
    "ComputeResource",
    "ComputeStatus",
    "DataprocConfig",
    "DiskStatus",
    "ErrorList",
    "GceConfig",
    "GceWithPdConfig",
    "GpuConfig",
    "KubernetesRuntimeConfig",
    "PersistentDisk",
    "ResourceError",
    "ResourceErrorInfo",
    "Runtime",
    "RuntimeConfig",
    "ToolLabel",
    "UserScriptError",
    "normalize_disk_status",
    "normalize_status",
    "zone_to_region",
]
