"""Derived "current" views over the control plane's resource history.

The control plane can return several overlapping records for the same
environment (an old instance still deleting while a new one provisions),
so the authoritative instance and its disk are always recomputed from the
full list. Every function here is pure and leaves its inputs untouched.

Ties on ``created_date`` resolve to the record that comes last in input
order: ``sorted`` is stable, and the last element of the sorted list wins.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from cloudenv.api.model import App, PersistentDisk, Runtime
from cloudenv.api.status import is_deleting

__all__ = [
    "Observed",
    "attached_disk",
    "current_app",
    "current_app_including_deleting",
    "current_runtime",
    "current_runtime_disk",
    "generate_disk_name",
    "is_disk_detaching",
    "ready_disk",
    "resolve_current",
    "resolve_disk",
    "resources_by_type",
    "user_has_multiple_disks",
]


# =============================================================================
# Current instance
# =============================================================================


class Observed(Protocol):
    """Any record with a normalized status and a creation date."""

    @property
    def status(self) -> str: ...

    @property
    def created_date(self) -> datetime: ...


def resolve_current[R: Observed](resources: Iterable[R], include_deleting: bool = False) -> R | None:
    """Newest resource by creation date, ignoring deleting ones unless asked."""
    candidates = [r for r in resources if include_deleting or r.status != "Deleting"]
    if not candidates:
        return None
    return sorted(candidates, key=lambda r: r.created_date)[-1]


def current_runtime(runtimes: Iterable[Runtime]) -> Runtime | None:
    return resolve_current(runtimes)


def _of_type[R: Runtime | App](resource_type: str, resources: Iterable[R]) -> list[R]:
    wanted = resource_type.upper()
    return [r for r in resources if r.resource_type.upper() == wanted]


def current_app(app_type: str, apps: Iterable[App]) -> App | None:
    return resolve_current(_of_type(app_type, apps))


def current_app_including_deleting(app_type: str, apps: Iterable[App]) -> App | None:
    return resolve_current(_of_type(app_type, apps), include_deleting=True)


def resources_by_type[R: Runtime | App](resources: Iterable[R]) -> dict[str, tuple[R, ...]]:
    """Group by app type (apps) or tool (runtimes), preserving input order."""
    groups: dict[str, list[R]] = {}
    for resource in resources:
        groups.setdefault(resource.resource_type, []).append(resource)
    return {key: tuple(items) for key, items in groups.items()}


# =============================================================================
# Disk affinity
# =============================================================================


def _references(resource: Runtime | App, disk: PersistentDisk) -> bool:
    """Apps point at their disk by name, runtimes by id."""
    if resource.disk_name is not None and resource.disk_name == disk.name:
        return True
    return resource.disk_id is not None and resource.disk_id == disk.id


def _referenced(resources: Iterable[Runtime | App]) -> tuple[set[str], set[int]]:
    names: set[str] = set()
    ids: set[int] = set()
    for resource in resources:
        if resource.disk_name:
            names.add(resource.disk_name)
        if resource.disk_id is not None:
            ids.add(resource.disk_id)
    return names, ids


def attached_disk(resource: Runtime | App | None, disks: Iterable[PersistentDisk]) -> PersistentDisk | None:
    if resource is None:
        return None
    return next((d for d in disks if _references(resource, d)), None)


def _newest(disks: Iterable[PersistentDisk]) -> PersistentDisk | None:
    ordered = sorted(disks, key=lambda d: d.created_date)
    return ordered[-1] if ordered else None


def resolve_disk(
    app_type: str,
    resources: Sequence[Runtime | App],
    disks: Sequence[PersistentDisk],
    workspace_name: str,
) -> PersistentDisk | None:
    """The disk that is, or should be, attached to ``app_type`` in a workspace.

    1. If the current resource (deleting included) points at a disk, that disk
       wins whatever its status or labels.
    2. Otherwise the newest disk labelled with this app type and workspace that
       is not deleting and not referenced by any resource.

    Disks with missing or non-string labels never match in step 2.
    """
    current = resolve_current(_of_type(app_type, resources), include_deleting=True)
    if (disk := attached_disk(current, disks)) is not None:
        return disk

    names, ids = _referenced(resources)
    wanted = app_type.upper()
    candidates = (
        d for d in disks
        if d.app_type == wanted
        and d.workspace_name is not None
        and d.workspace_name == workspace_name
        and d.status != "Deleting"
        and d.name not in names
        and d.id not in ids
    )
    return _newest(candidates)


def current_runtime_disk(
    runtimes: Sequence[Runtime],
    disks: Sequence[PersistentDisk],
) -> PersistentDisk | None:
    """Runtime flavour of :func:`resolve_disk`, keyed by persistent disk id.

    Falls back to the newest non-deleting disk no runtime points at; callers
    pass the runtime disks of one workspace.
    """
    current = current_runtime(runtimes)
    if current is not None and current.disk_id is not None:
        return next((d for d in disks if d.id == current.disk_id), None)
    _, ids = _referenced(runtimes)
    return _newest(d for d in disks if d.status != "Deleting" and d.id not in ids)


def is_disk_detaching(app_type: str, apps: Iterable[App]) -> bool:
    """The current app is being deleted, so its disk is on its way out."""
    current = current_app_including_deleting(app_type, apps)
    return current is not None and is_deleting(current.status)


def ready_disk(disks: Iterable[PersistentDisk]) -> PersistentDisk | None:
    return next((d for d in disks if d.status == "Ready"), None)


def user_has_multiple_disks(
    disks: Iterable[PersistentDisk],
    app_type: str | None,
    creator: str,
) -> bool:
    """Whether ``creator`` owns more disks than the one the UI can show.

    With an ``app_type``, that means two live disks of that type in the same
    workspace; without one (runtimes), more than one live unlabelled disk.
    """
    mine = [d for d in disks if d.audit_info.creator == creator and d.status != "Deleting"]
    if app_type is None:
        return sum(1 for d in mine if d.app_type is None) > 1
    workspaces = [d.workspace_name for d in mine if d.app_type == app_type.upper()]
    return len(set(workspaces)) < len(workspaces)


def generate_disk_name() -> str:
    return f"saturn-pd-{uuid.uuid4()}"
