"""Status vocabulary normalization and status predicates.

Leonardo reports runtime statuses in CamelCase (``Creating``, ``PreStarting``)
and app statuses in upper case (``PROVISIONING``, ``PREDELETING``). Records
carry both the normalized :data:`ComputeStatus` and the raw value; the
predicates below mirror the control plane's own deletable/pausable rules
and work on the raw value.
"""

from __future__ import annotations

from typing import assert_never

from cloudenv.api.model import App, ComputeStatus, DiskStatus, PersistentDisk, Runtime

_COMPUTE_STATUSES: dict[str, ComputeStatus] = {
    "creating": "Creating",
    "precreating": "Creating",
    "provisioning": "Creating",
    "starting": "Starting",
    "prestarting": "Starting",
    "running": "Running",
    "updating": "Updating",
    "leoreconfiguring": "Updating",
    "stopping": "Stopping",
    "prestopping": "Stopping",
    "stopped": "Stopped",
    "deleting": "Deleting",
    "predeleting": "Deleting",
    "deleted": "Deleting",
    "error": "Error",
}

_DISK_STATUSES: dict[str, DiskStatus] = {
    "creating": "Creating",
    "restoring": "Restoring",
    "ready": "Ready",
    "deleting": "Deleting",
    "deleted": "Deleting",
    "failed": "Failed",
}

TERMINAL_STATUSES: frozenset[ComputeStatus] = frozenset({"Error"})
USABLE_STATUSES: frozenset[ComputeStatus] = frozenset({"Running", "Updating"})

_DELETABLE_RUNTIME = frozenset({"unknown", "running", "updating", "error", "stopping", "stopped", "starting"})
_DELETABLE_APP = frozenset({"unspecified", "running", "error"})
_DELETABLE_DISK = frozenset({"failed", "ready"})
_PAUSABLE_RUNTIME = frozenset({"unknown", "running", "updating", "starting"})
_PAUSABLE_APP = frozenset({"running", "starting"})

_DISPLAY = {
    "starting": "Resuming",
    "prestarting": "Resuming",
    "stopping": "Pausing",
    "prestopping": "Pausing",
    "stopped": "Paused",
}

_GPU_NAMES = {
    "nvidia-tesla-k80": "NVIDIA Tesla K80",
    "nvidia-tesla-p4": "NVIDIA Tesla P4",
    "nvidia-tesla-v100": "NVIDIA Tesla V100",
    "nvidia-tesla-p100": "NVIDIA Tesla P100",
}


def _key(raw: str | None) -> str:
    return (raw or "").replace("_", "").replace(" ", "").lower()


def normalize_status(raw: str | None) -> ComputeStatus:
    return _COMPUTE_STATUSES.get(_key(raw), "Unknown")


def normalize_disk_status(raw: str | None) -> DiskStatus:
    return _DISK_STATUSES.get(_key(raw), "Unknown")


def is_deleting(status: ComputeStatus) -> bool:
    return status == "Deleting"


def is_resource_deletable(resource: Runtime | App | PersistentDisk) -> bool:
    match resource:
        case Runtime(raw_status=raw):
            return _key(raw) in _DELETABLE_RUNTIME
        case App(raw_status=raw):
            return _key(raw) in _DELETABLE_APP
        case PersistentDisk(status=status):
            return _key(status) in _DELETABLE_DISK
        case _:
            assert_never(resource)


def is_compute_pausable(resource: Runtime | App) -> bool:
    status = _key(resource.raw_status)
    match resource:
        case Runtime():
            return status in _PAUSABLE_RUNTIME
        case App():
            return status in _PAUSABLE_APP
        case _:
            assert_never(resource)


def is_busy(resource: Runtime | App) -> bool:
    """Transitional: any ``-ing`` status other than running."""
    status = _key(resource.raw_status)
    return status != "running" and "ing" in status


def is_setting_up(app: App | None) -> bool:
    return app is not None and _key(app.raw_status) in ("provisioning", "precreating")


def converted_runtime_status(runtime: Runtime | None) -> str | None:
    if runtime is None:
        return None
    return "LeoReconfiguring" if runtime.patch_in_progress else runtime.raw_status


def status_for_display(raw: str | None) -> str:
    key = _key(raw)
    if key in _DISPLAY:
        return _DISPLAY[key]
    return (raw or "").capitalize()


def gpu_display_name(gpu_type: str) -> str:
    return _GPU_NAMES.get(gpu_type, "NVIDIA Tesla T4")
