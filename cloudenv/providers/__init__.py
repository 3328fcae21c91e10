from .apps import AppProvider
from .disks import DiskProvider
from .leonardo import LeonardoClient
from .provider import (
    AzurePlacement,
    Filters,
    GcpPlacement,
    LifecycleProvider,
    Placement,
    ResourceLister,
)
from .runtimes import RuntimeProvider
from .storage import StorageClient

__all__ = [
    "AppProvider",
    "AzurePlacement",
    "DiskProvider",
    "Filters",
    "GcpPlacement",
    "LeonardoClient",
    "LifecycleProvider",
    "Placement",
    "ResourceLister",
    "RuntimeProvider",
    "StorageClient",
]
