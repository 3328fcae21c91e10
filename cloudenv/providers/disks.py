"""Persistent disk listing and deletion."""

from __future__ import annotations

from collections.abc import Sequence
from typing import assert_never

from cloudenv.api.model import PersistentDisk
from cloudenv.exceptions import UnsupportedOperation
from cloudenv.infra.cancel import CancelToken

from .leonardo import LeonardoClient, parse_disk
from .provider import Filters, delete_idempotently, require_workspace


def _disk_id(disk: PersistentDisk) -> int:
    if disk.id is None:
        raise UnsupportedOperation(f"Disk {disk.name} has no id; Azure disks are keyed by id")
    return disk.id


class DiskProvider:
    def __init__(self, leonardo: LeonardoClient) -> None:
        self._leo = leonardo

    async def list(
        self, filters: Filters | None = None, *, cancel: CancelToken | None = None
    ) -> Sequence[PersistentDisk]:
        raw = await self._leo.list_disks(dict(filters or {}), cancel=cancel)
        return tuple(parse_disk(d) for d in raw)

    async def details(self, disk: PersistentDisk, *, cancel: CancelToken | None = None) -> PersistentDisk:
        match disk.cloud_provider:
            case "GCP":
                raw = await self._leo.get_disk(disk.cloud_context.resource, disk.name, cancel=cancel)
            case "AZURE":
                workspace_id = require_workspace(disk.workspace_id, f"Disk {disk.name}")
                raw = await self._leo.get_disk_v2(workspace_id, _disk_id(disk), cancel=cancel)
            case _:
                assert_never(disk.cloud_provider)
        return parse_disk(raw)

    async def delete(self, disk: PersistentDisk, *, cancel: CancelToken | None = None) -> None:
        match disk.cloud_provider:
            case "GCP":
                call = self._leo.delete_disk(disk.cloud_context.resource, disk.name, cancel=cancel)
            case "AZURE":
                workspace_id = require_workspace(disk.workspace_id, f"Disk {disk.name}")
                call = self._leo.delete_disk_v2(workspace_id, _disk_id(disk), cancel=cancel)
            case _:
                assert_never(disk.cloud_provider)
        await delete_idempotently(call, f"Disk {disk.name}")
