"""Polling reconciliation of one resource group, and the per-workspace facade.

A :class:`PollingReconciler` owns the cached resource list of one group
(one provider plus one set of label filters). It refreshes on a fixed
interval, replaces the cache wholesale on every successful poll and
publishes immutable :class:`Snapshot` objects. Only the newest refresh may
publish: starting a refresh cancels the token of the previous one, and a
result whose generation has been superseded is dropped.

State machine::

    Idle --start()--> Polling --all Error / deleted--> Terminal
                        ^                                 |
                        +------ refresh() finds work -----+
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal, assert_never

from cloudenv.api.model import (
    WORKSPACE_NAME_LABEL,
    WORKSPACE_NAMESPACE_LABEL,
    App,
    CloudProvider,
    KubernetesRuntimeConfig,
    PersistentDisk,
    ResourceErrorInfo,
    Runtime,
)
from cloudenv.constants import DEFAULT_DATA_DISK_SIZE, DEFAULT_POLL_INTERVAL
from cloudenv.cost import CostEngine, format_usd
from cloudenv.exceptions import CloudEnvError, OperationCancelled, UnsupportedOperation
from cloudenv.infra.cancel import CancelToken
from cloudenv.infra.http import HttpError
from cloudenv.observability.logger import logger
from cloudenv.providers.apps import AppProvider
from cloudenv.providers.disks import DiskProvider
from cloudenv.providers.provider import AzurePlacement, Filters, GcpPlacement, Placement, ResourceLister
from cloudenv.providers.runtimes import RuntimeProvider
from cloudenv.resolve import (
    Observed,
    current_app,
    current_app_including_deleting,
    current_runtime_disk,
    resolve_current,
    resolve_disk,
)

log = logger.bind(component="reconciler")

type ReconcilerState = Literal["Idle", "Polling", "Terminal"]


# =============================================================================
# Snapshots and signals
# =============================================================================


@dataclass(frozen=True, slots=True)
class Snapshot[R]:
    """Read-only view of a group, rebuilt from scratch on every poll."""

    resources: tuple[R, ...] = ()
    current: R | None = None
    current_including_deleting: R | None = None
    state: ReconcilerState = "Idle"
    generation: int = 0
    loaded: bool = False
    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class Deleted:
    """A resource that was deleting has disappeared from the control plane."""

    name: str
    cloud_resource: str


type ChangeListener[R] = Callable[[Snapshot[R]], None]
type DeletedListener = Callable[[Deleted], None]


def _key(resource: Any) -> tuple[str, str]:
    return resource.cloud_context.resource, resource.name


def _discard(listeners: list[Any], listener: Any) -> None:
    if listener in listeners:
        listeners.remove(listener)


# =============================================================================
# Reconciler
# =============================================================================


class PollingReconciler[R: Observed]:
    """Periodic control loop over one resource group.

    Parameters
    ----------
    provider
        Source of the resource list; failures propagate out of ``list``.
    filters
        Label filters identifying the group.
    interval
        Seconds between polls.
    terminal_statuses
        Statuses that are reported rather than waited on. A group whose
        resources are all in one of these stops polling.
    current_views
        Fill ``Snapshot.current`` and ``current_including_deleting``. Off for
        groups that mix kinds (apps of several types), where "current" only
        exists per kind.
    """

    def __init__(
        self,
        provider: ResourceLister[R],
        filters: Filters | None = None,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        terminal_statuses: frozenset[str] = frozenset({"Error"}),
        name: str = "resources",
        current_views: bool = True,
    ) -> None:
        self._provider = provider
        self._filters: Mapping[str, Any] = dict(filters or {})
        self._interval = interval
        self._terminal_statuses = terminal_statuses
        self._name = name
        self._current_views = current_views
        self._snapshot: Snapshot[R] = Snapshot()
        self._generation = 0
        self._token: CancelToken | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._change_listeners: list[ChangeListener[R]] = []
        self._deleted_listeners: list[DeletedListener] = []
        self._log = log.bind(group=name)

    @property
    def snapshot(self) -> Snapshot[R]:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._running

    # ─── Listeners ───────────────────────────────────────────────────

    def on_change(self, listener: ChangeListener[R]) -> Callable[[], None]:
        """Subscribe; the returned callable unsubscribes and may be called repeatedly."""
        self._change_listeners.append(listener)
        return lambda: _discard(self._change_listeners, listener)

    def on_deleted(self, listener: DeletedListener) -> Callable[[], None]:
        self._deleted_listeners.append(listener)
        return lambda: _discard(self._deleted_listeners, listener)

    def _publish(self, snapshot: Snapshot[R]) -> None:
        self._snapshot = snapshot
        for listener in tuple(self._change_listeners):
            try:
                listener(snapshot)
            except Exception:
                self._log.exception("Change listener failed")

    def _signal(self, deleted: Deleted) -> None:
        self._log.info("{name} deleted", name=deleted.name)
        for listener in tuple(self._deleted_listeners):
            try:
                listener(deleted)
            except Exception:
                self._log.exception("Deleted listener failed")

    # ─── Lifecycle ───────────────────────────────────────────────────

    def start(self) -> None:
        """Refresh now, then every ``interval`` seconds until terminal or stopped."""
        self._running = True
        if self._task is not None and not self._task.done():
            return
        self._log.info("Polling {group} every {interval}s", group=self._name, interval=self._interval)
        self._publish(replace(self._snapshot, state="Polling"))
        self._task = asyncio.create_task(self._loop(), name=f"poll-{self._name}")

    async def stop(self) -> None:
        """Stop the loop and abandon any in-flight call. The snapshot is kept."""
        self._running = False
        if self._token is not None:
            self._token.cancel("stopped")
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._snapshot.state == "Polling":
            self._publish(replace(self._snapshot, state="Idle"))

    async def _loop(self) -> None:
        while True:
            await self.refresh()
            if self._snapshot.state == "Terminal" or not self._running:
                return
            await asyncio.sleep(self._interval)

    # ─── Polling ─────────────────────────────────────────────────────

    async def refresh(self) -> Snapshot[R]:
        """Poll once. Supersedes any refresh still in flight."""
        self._generation += 1
        generation = self._generation
        if self._token is not None:
            self._token.cancel("superseded")
        token = self._token = CancelToken()

        try:
            resources = await self._provider.list(self._filters, cancel=token)
        except OperationCancelled:
            self._log.debug("Poll {generation} superseded", generation=generation)
            return self._snapshot
        except (CloudEnvError, HttpError) as e:
            if generation != self._generation:
                return self._snapshot
            self._log.error("Poll of {group} failed: {error}", group=self._name, error=e)
            self._publish(replace(self._snapshot, error=e, generation=generation))
            return self._snapshot
        except Exception as e:
            # Timeouts, bad payloads: the next scheduled poll retries.
            if generation != self._generation:
                return self._snapshot
            self._log.exception("Poll of {group} failed unexpectedly", group=self._name)
            self._publish(replace(self._snapshot, error=e, generation=generation))
            return self._snapshot

        if generation != self._generation:
            self._log.debug("Dropping result of superseded poll {generation}", generation=generation)
            return self._snapshot

        self._apply(tuple(resources), generation)
        return self._snapshot

    def _apply(self, resources: tuple[R, ...], generation: int) -> None:
        previous = self._snapshot
        present = {_key(r) for r in resources}
        vanished = [
            r for r in previous.resources
            if r.status == "Deleting" and _key(r) not in present
        ]
        live = [r for r in resources if r.status not in self._terminal_statuses]
        terminal = bool(resources or vanished) and not live

        if terminal:
            state: ReconcilerState = "Terminal"
        elif self._running:
            state = "Polling"
        else:
            state = "Idle"

        self._log.debug(
            "Poll {generation}: {n} {group}, state={state}",
            generation=generation, n=len(resources), group=self._name, state=state,
        )
        self._publish(Snapshot(
            resources=resources,
            current=resolve_current(resources) if self._current_views else None,
            current_including_deleting=(
                resolve_current(resources, include_deleting=True) if self._current_views else None
            ),
            state=state,
            generation=generation,
            loaded=True,
            error=None,
        ))
        for r in vanished:
            cloud_resource, resource_name = _key(r)
            self._signal(Deleted(name=resource_name, cloud_resource=cloud_resource))

        if terminal and previous.state != "Terminal":
            self._log.info("{group} reached a terminal state", group=self._name)
        if state == "Polling" and (self._task is None or self._task.done()):
            # Something new showed up after the loop had stopped.
            self._task = asyncio.create_task(self._loop_after_sleep(), name=f"poll-{self._name}")

    async def _loop_after_sleep(self) -> None:
        await asyncio.sleep(self._interval)
        await self._loop()


# =============================================================================
# Workspace facade
# =============================================================================


@dataclass(frozen=True, slots=True)
class Workspace:
    name: str
    namespace: str
    cloud_provider: CloudProvider = "GCP"
    google_project: str | None = None
    workspace_id: str | None = None
    bucket_name: str | None = None

    @property
    def placement(self) -> Placement:
        match self.cloud_provider:
            case "GCP" if self.google_project:
                return GcpPlacement(google_project=self.google_project)
            case "AZURE" if self.workspace_id:
                return AzurePlacement(workspace_id=self.workspace_id)
            case _:
                raise UnsupportedOperation(
                    f"Workspace {self.namespace}/{self.name} has no {self.cloud_provider} project or workspace id"
                )

    @property
    def filters(self) -> dict[str, str]:
        return {WORKSPACE_NAMESPACE_LABEL: self.namespace, WORKSPACE_NAME_LABEL: self.name}


@dataclass(slots=True)
class WorkspaceEnvironments:
    """Live runtimes, apps, disks and costs of one workspace.

    Each instance owns its own reconcilers; two workspaces never share state.
    Imperative operations refresh the affected groups as soon as the control
    plane accepts the call.
    """

    workspace: Workspace
    runtime_provider: RuntimeProvider
    app_provider: AppProvider
    disk_provider: DiskProvider
    cost: CostEngine = field(default_factory=CostEngine)
    interval: float = DEFAULT_POLL_INTERVAL
    runtimes: PollingReconciler[Runtime] = field(init=False)
    apps: PollingReconciler[App] = field(init=False)
    disks: PollingReconciler[PersistentDisk] = field(init=False)

    def __post_init__(self) -> None:
        filters = self.workspace.filters
        self.runtimes = PollingReconciler(
            self.runtime_provider, filters, interval=self.interval, name="runtimes",
        )
        self.apps = PollingReconciler(
            self.app_provider, filters, interval=self.interval, name="apps", current_views=False,
        )
        self.disks = PollingReconciler(
            self.disk_provider, filters, interval=self.interval,
            terminal_statuses=frozenset({"Failed"}), name="disks",
        )

    def _groups(self) -> tuple[PollingReconciler[Any], ...]:
        return (self.runtimes, self.apps, self.disks)

    def start(self) -> None:
        for group in self._groups():
            group.start()

    async def stop(self) -> None:
        await asyncio.gather(*(group.stop() for group in self._groups()))

    async def refresh(self) -> None:
        await asyncio.gather(*(group.refresh() for group in self._groups()))

    # ─── Current views ───────────────────────────────────────────────

    @property
    def current_runtime(self) -> Runtime | None:
        return self.runtimes.snapshot.current

    def current_app(self, app_type: str) -> App | None:
        return current_app(app_type, self.apps.snapshot.resources)

    def current_app_including_deleting(self, app_type: str) -> App | None:
        return current_app_including_deleting(app_type, self.apps.snapshot.resources)

    def current_disk(self, app_type: str | None = None) -> PersistentDisk | None:
        """The disk of the current runtime (no ``app_type``) or of an app type."""
        disks = self.disks.snapshot.resources
        if app_type is None:
            runtime_disks = [d for d in disks if d.app_type is None]
            return current_runtime_disk(self.runtimes.snapshot.resources, runtime_disks)
        return resolve_disk(app_type, self.apps.snapshot.resources, disks, self.workspace.name)

    def hourly_cost(self, app_type: str | None = None) -> float:
        resource: Runtime | App | None = (
            self.current_runtime if app_type is None else self.current_app(app_type)
        )
        disk = self.current_disk(app_type)
        if resource is not None:
            return self.cost.environment_cost(resource, disk)
        return self.cost.disk_cost_hourly(disk) if disk is not None else 0.0

    def cost_display(self, app_type: str | None = None) -> str:
        return f"{format_usd(self.hourly_cost(app_type))} / hr"

    async def error_info(self, resource: Runtime | App, *, cancel: CancelToken | None = None) -> ResourceErrorInfo:
        match resource:
            case Runtime():
                return await self.runtime_provider.error_info(resource, cancel=cancel)
            case App():
                return await self.app_provider.error_info(resource, cancel=cancel)
            case _:
                assert_never(resource)

    # ─── Imperative operations ───────────────────────────────────────

    async def stop_environment(self, resource: Runtime | App) -> None:
        match resource:
            case Runtime():
                await self.runtime_provider.stop(resource)
                await self.runtimes.refresh()
            case App():
                await self.app_provider.stop(resource)
                await self.apps.refresh()
            case _:
                assert_never(resource)

    async def delete_environment(self, resource: Runtime | App, *, delete_disk: bool = False) -> None:
        match resource:
            case Runtime():
                await self.runtime_provider.delete(resource, delete_disk=delete_disk)
                await asyncio.gather(self.runtimes.refresh(), self.disks.refresh())
            case App():
                await self.app_provider.delete(resource, delete_disk=delete_disk)
                await asyncio.gather(self.apps.refresh(), self.disks.refresh())
            case _:
                assert_never(resource)

    async def delete_disk(self, disk: PersistentDisk) -> None:
        await self.disk_provider.delete(disk)
        await self.disks.refresh()

    async def create_runtime(
        self, name: str, request: Mapping[str, Any], *, labels: Mapping[str, str] | None = None
    ) -> None:
        await self.runtime_provider.create(
            self.workspace.placement, name, request,
            labels={**self.workspace.filters, **(labels or {})},
        )
        await asyncio.gather(self.runtimes.refresh(), self.disks.refresh())

    async def create_app(
        self,
        name: str,
        app_type: str,
        *,
        kubernetes_runtime_config: KubernetesRuntimeConfig | None = None,
        disk_name: str | None = None,
        disk_size: int = DEFAULT_DATA_DISK_SIZE,
        access_scope: str | None = None,
    ) -> None:
        await self.app_provider.create(
            self.workspace.placement,
            name,
            app_type,
            workspace_name=self.workspace.name,
            workspace_namespace=self.workspace.namespace,
            bucket_name=self.workspace.bucket_name,
            kubernetes_runtime_config=kubernetes_runtime_config,
            disk_name=disk_name,
            disk_size=disk_size,
            access_scope=access_scope,
        )
        await asyncio.gather(self.apps.refresh(), self.disks.refresh())
