from __future__ import annotations

from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from cloudenv.api.model import ResourceErrorInfo
from cloudenv.exceptions import ControlPlaneError, UnsupportedOperation
from cloudenv.infra.cancel import CancelToken
from cloudenv.observability.logger import logger

log = logger.bind(component="provider")

type Filters = Mapping[str, Any]


@runtime_checkable
class ResourceLister[R](Protocol):
    """Anything the polling reconciler can watch."""

    async def list(self, filters: Filters | None = None, *, cancel: CancelToken | None = None) -> Sequence[R]:
        """List resources matching ``filters`` (label key/values).

        Failures propagate: an empty result always means "no resources",
        never "the fetch failed".
        """
        ...


@runtime_checkable
class LifecycleProvider[R](ResourceLister[R], Protocol):
    """Uniform lifecycle operations over one kind of compute resource.

    Implementations are stateless apart from their clients. Every operation
    branches on the resource's cloud provider to pick the control-plane call:
    GCP resources are keyed by ``(google_project, name)``, Azure ones by
    ``(workspace_id, name)``.
    """

    async def error_info(self, resource: R, *, cancel: CancelToken | None = None) -> ResourceErrorInfo:
        """Structured error detail for a resource in ``Error``.

        Parameters
        ----------
        resource
            A resource previously returned by ``list``.
        cancel
            Aborts the detail call and any secondary log fetch.
        """
        ...

    async def stop(self, resource: R, *, cancel: CancelToken | None = None) -> None:
        ...

    async def delete(
        self,
        resource: R,
        *,
        delete_disk: bool = False,
        cancel: CancelToken | None = None,
    ) -> None:
        """Delete a resource. A resource that is already gone counts as deleted."""
        ...


# =============================================================================
# Placement: where a new resource is created
# =============================================================================


@dataclass(frozen=True, slots=True)
class GcpPlacement:
    google_project: str


@dataclass(frozen=True, slots=True)
class AzurePlacement:
    workspace_id: str


type Placement = GcpPlacement | AzurePlacement


# =============================================================================
# Helpers
# =============================================================================


def require_workspace(workspace_id: str | None, what: str) -> str:
    if not workspace_id:
        raise UnsupportedOperation(f"{what} has no workspace id; Azure calls are keyed by workspace")
    return workspace_id


async def delete_idempotently(call: Awaitable[None], what: str) -> None:
    """Await a delete call, treating 404 as already deleted."""
    try:
        await call
    except ControlPlaneError as e:
        if not e.not_found:
            raise
        log.info("{what} already deleted", what=what)
