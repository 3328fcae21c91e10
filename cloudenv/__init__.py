"""cloudenv - Track, price and manage cloud analysis environments.

Example:

    from cloudenv import (
        AppProvider, DiskProvider, LeonardoClient, RuntimeProvider,
        StorageClient, Workspace, WorkspaceEnvironments, load_settings,
    )
    from cloudenv.infra import BearerAuth

    settings = load_settings()
    auth = BearerAuth(token)
    leo = LeonardoClient(settings.leonardo_url, auth)
    storage = StorageClient(settings.storage_url, auth)

    env = WorkspaceEnvironments(
        Workspace(name="ws", namespace="ns", google_project="proj"),
        RuntimeProvider(leo, storage),
        AppProvider(leo),
        DiskProvider(leo),
        interval=settings.poll_interval,
    )
    env.start()
    print(env.cost_display())
"""

# Records
from cloudenv.api import (
    App,
    ErrorList,
    PersistentDisk,
    ResourceError,
    Runtime,
    UserScriptError,
)

# Configuration
from cloudenv.config import Settings, load_config, load_settings

# Cost estimation
from cloudenv.cost import CostEngine, format_usd
from cloudenv.pricing import PricingTables, load_pricing

# Errors
from cloudenv.errors import classify_errors
from cloudenv.exceptions import (
    CloudEnvError,
    ControlPlaneError,
    OperationCancelled,
    StorageError,
    UnsupportedOperation,
)

# Logging
from cloudenv.observability import logger

# Providers
from cloudenv.providers import (
    AppProvider,
    AzurePlacement,
    DiskProvider,
    GcpPlacement,
    LeonardoClient,
    RuntimeProvider,
    StorageClient,
)

# Reconciliation
from cloudenv.reconciler import (
    Deleted,
    PollingReconciler,
    Snapshot,
    Workspace,
    WorkspaceEnvironments,
)

# Current-instance resolution
from cloudenv.resolve import (
    current_app,
    current_runtime,
    current_runtime_disk,
    resolve_current,
    resolve_disk,
)

__version__ = "0.1.0"

__all__ = [
    # Records
    "App",
    "ErrorList",
    "PersistentDisk",
    "ResourceError",
    "Runtime",
    "UserScriptError",
    # Configuration
    "Settings",
    "load_config",
    "load_settings",
    # Cost estimation
    "CostEngine",
    "PricingTables",
    "format_usd",
    "load_pricing",
    # Errors
    "CloudEnvError",
    "ControlPlaneError",
    "OperationCancelled",
    "StorageError",
    "UnsupportedOperation",
    "classify_errors",
    # Logging
    "logger",
    # Providers
    "AppProvider",
    "AzurePlacement",
    "DiskProvider",
    "GcpPlacement",
    "LeonardoClient",
    "RuntimeProvider",
    "StorageClient",
    # Reconciliation
    "Deleted",
    "PollingReconciler",
    "Snapshot",
    "Workspace",
    "WorkspaceEnvironments",
    # Current-instance resolution
    "current_app",
    "current_runtime",
    "current_runtime_disk",
    "resolve_current",
    "resolve_disk",
    # Version
    "__version__",
]
