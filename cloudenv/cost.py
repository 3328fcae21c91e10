"""Hourly and monthly cost estimates for runtimes, apps and disks.

All figures are plain USD floats. Nothing here raises for well-typed input:
an unknown region, machine type, GPU or disk class turns into ``nan`` and
propagates through any sum it takes part in, so a display shows "unknown"
instead of a misleadingly low figure.

Status gating applies to every compute resource:

- ``Stopped``: base cost only (disks and reserved capacity still bill)
- ``Deleting``/``Error``: nothing
- anything else: the full running cost
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import assert_never

from cloudenv.api.model import (
    App,
    AzureConfig,
    ComputeStatus,
    DataprocConfig,
    GceConfig,
    GceWithPdConfig,
    GpuConfig,
    PersistentDisk,
    Runtime,
    RuntimeConfig,
    zone_to_region,
)
from cloudenv.constants import (
    DEFAULT_BOOT_DISK_SIZE,
    DEFAULT_DATAPROC_DISK_SIZE,
    DEFAULT_DATAPROC_MACHINE_TYPE,
    DEFAULT_NODEPOOL_IPS,
    DEFAULT_NODEPOOL_MACHINE_TYPE,
    GALAXY_DEFAULT_NODEPOOL_BOOT_DISK_SIZE,
    GALAXY_METADATA_DISK_SIZE,
    GALAXY_NODEPOOL_BOOT_DISK_SIZE,
)
from cloudenv.observability.logger import logger
from cloudenv.pricing import HOURS_PER_MONTH, PricingSource, PricingTables

log = logger.bind(component="cost")

NAN = math.nan
STANDARD_DISK = "pd-standard"

_FREE_DISK_STATUSES = frozenset({"Deleting", "Failed"})


def format_usd(value: float) -> str:
    """``$1.23``, or ``unknown`` when any input price was missing."""
    if math.isnan(value):
        return "unknown"
    return f"${value:,.2f}"


def _gated(status: ComputeStatus, base: Callable[[], float], running: Callable[[], float]) -> float:
    match status:
        case "Stopped":
            return base()
        case "Deleting" | "Error":
            return 0.0
        case _:
            return running()


class CostEngine:
    """Prices resources against one immutable set of pricing tables."""

    def __init__(self, pricing: PricingSource | None = None) -> None:
        self._pricing = pricing if pricing is not None else PricingTables.default()

    @property
    def pricing(self) -> PricingSource:
        return self._pricing

    # ─── Building blocks ─────────────────────────────────────────────

    def machine_price(self, region: str, machine_type: str, *, preemptible: bool = False) -> float:
        """``cpu x per-cpu price + memory x per-GB price`` for an n1 shape."""
        machine = self._pricing.machine_type(machine_type)
        if machine is None:
            log.debug("Unknown machine type {machine}", machine=machine_type)
            return NAN
        cpu = self._pricing.cpu_price(region, preemptible=preemptible)
        ram = self._pricing.ram_price(region, preemptible=preemptible)
        return machine.cpu * cpu + machine.memory_gb * ram

    def gpu_cost(self, region: str, gpu_config: GpuConfig | None, *, preemptible: bool = False) -> float:
        if gpu_config is None:
            return 0.0
        price = self._pricing.gpu_price(region, gpu_config.gpu_type, preemptible=preemptible)
        return price * gpu_config.num_gpus

    def ephemeral_ip_cost(self, standard_vms: int, preemptible_vms: int = 0) -> float:
        """Any VM that is not preemptible counts as standard."""
        ip = self._pricing.ephemeral_ip
        return standard_vms * ip.standard + preemptible_vms * ip.preemptible

    def storage_price_hourly(self, region: str, disk_type: str = STANDARD_DISK) -> float:
        return self._pricing.monthly_disk_price(region, disk_type) / HOURS_PER_MONTH

    def azure_vm_cost(self, region: str | None, machine_type: str) -> float:
        price = self._pricing.azure_vm(region or "", machine_type)
        return price.hourly if price is not None else NAN

    def _dataproc_cost(self, machine_type: str, instances: int) -> float:
        """Dataproc service fee: billed per vCPU, no memory term."""
        machine = self._pricing.machine_type(machine_type)
        if machine is None:
            return NAN
        return machine.cpu * instances * self._pricing.dataproc_cpu

    # ─── Disks ───────────────────────────────────────────────────────

    def disk_cost_monthly(self, disk: PersistentDisk) -> float:
        if disk.status in _FREE_DISK_STATUSES:
            return 0.0
        size = max(disk.size, 0)
        match disk.cloud_provider:
            case "GCP":
                return size * self._pricing.monthly_disk_price(disk.region, disk.disk_type)
            case "AZURE":
                tier = self._pricing.azure_disk_tier(disk.region, size)
                return tier.monthly if tier is not None else NAN
            case _:
                assert_never(disk.cloud_provider)

    def disk_cost_hourly(self, disk: PersistentDisk) -> float:
        return self.disk_cost_monthly(disk) / HOURS_PER_MONTH

    # ─── Runtimes ────────────────────────────────────────────────────

    def runtime_base_cost(self, config: RuntimeConfig) -> float:
        """What a runtime costs while stopped."""
        match config:
            case GceConfig(disk_size=disk_size, boot_disk_size=boot):
                size = disk_size + (boot or DEFAULT_BOOT_DISK_SIZE)
                return size * self.storage_price_hourly(config.region)
            case GceWithPdConfig(boot_disk_size=boot):
                # The persistent disk is a separate resource with its own cost.
                return (boot or DEFAULT_BOOT_DISK_SIZE) * self.storage_price_hourly(config.region)
            case DataprocConfig():
                workers, _, worker_type, worker_disk = _dataproc_workers(config)
                disks = config.master_disk_size + workers * worker_disk
                return (
                    disks * self.storage_price_hourly(config.region)
                    + self._dataproc_cost(config.master_machine_type, 1)
                    + self._dataproc_cost(worker_type, workers)
                )
            case AzureConfig():
                return 0.0
            case _:
                assert_never(config)

    def runtime_running_cost(self, config: RuntimeConfig) -> float:
        match config:
            case GceConfig() | GceWithPdConfig():
                region = config.region
                return (
                    self.machine_price(region, config.machine_type)
                    + self.gpu_cost(region, config.gpu_config)
                    + self.ephemeral_ip_cost(1)
                    + self.runtime_base_cost(config)
                )
            case DataprocConfig():
                region = config.region
                workers, preemptible, worker_type, worker_disk = _dataproc_workers(config)
                return (
                    self.machine_price(region, config.master_machine_type)
                    + workers * self.machine_price(region, worker_type)
                    + preemptible * self.machine_price(region, worker_type, preemptible=True)
                    + preemptible * worker_disk * self.storage_price_hourly(region)
                    + self._dataproc_cost(worker_type, preemptible)
                    + self.ephemeral_ip_cost(1 + workers, preemptible)
                    + self.runtime_base_cost(config)
                )
            case AzureConfig(machine_type=machine_type, region=region):
                return self.azure_vm_cost(region, machine_type)
            case _:
                assert_never(config)

    def runtime_cost(self, runtime: Runtime) -> float:
        config = runtime.runtime_config
        return _gated(
            runtime.status,
            lambda: self.runtime_base_cost(config),
            lambda: self.runtime_running_cost(config),
        )

    # ─── Apps ────────────────────────────────────────────────────────

    def _default_nodepool_cost(self, region: str) -> float:
        """The always-on default nodepool, charged in full to every app on the cluster."""
        return (
            self.machine_price(region, DEFAULT_NODEPOOL_MACHINE_TYPE)
            + self.ephemeral_ip_cost(DEFAULT_NODEPOOL_IPS)
        )

    def _app_nodepool_cost(self, region: str, app: App) -> float:
        config = app.kubernetes_runtime_config
        if config is None:
            return NAN
        return (
            config.num_nodes * self.machine_price(region, config.machine_type)
            + self.ephemeral_ip_cost(config.num_nodes)
        )

    def app_compute_cost(self, app: App) -> float:
        match app.cloud_provider:
            case "GCP":
                region = zone_to_region(app.region)
                static = self._default_nodepool_cost(region)
                return _gated(
                    app.status,
                    lambda: static,
                    lambda: static + self._app_nodepool_cost(region, app),
                )
            case "AZURE":
                return _gated(app.status, lambda: NAN, lambda: NAN)
            case _:
                assert_never(app.cloud_provider)

    def app_disk_cost(self, app: App, data_disk_size: int, disk_type: str = STANDARD_DISK) -> float:
        """Hourly disk cost of an app; billed whatever the app's status.

        Galaxy also provisions a metadata disk and one boot disk per nodepool,
        all of fixed size, on top of the user-sized data disk.
        """
        size = max(data_disk_size, 0)
        if app.app_type.upper() == "GALAXY":
            size += (
                GALAXY_METADATA_DISK_SIZE
                + GALAXY_DEFAULT_NODEPOOL_BOOT_DISK_SIZE
                + GALAXY_NODEPOOL_BOOT_DISK_SIZE
            )
        match app.cloud_provider:
            case "GCP":
                return size * self.storage_price_hourly(zone_to_region(app.region), disk_type)
            case "AZURE":
                tier = self._pricing.azure_disk_tier(app.region, size)
                return tier.monthly / HOURS_PER_MONTH if tier is not None else NAN
            case _:
                assert_never(app.cloud_provider)

    def app_cost(self, app: App, data_disk: PersistentDisk | None = None) -> float:
        compute = self.app_compute_cost(app)
        if data_disk is None or data_disk.status in _FREE_DISK_STATUSES:
            return compute
        return compute + self.app_disk_cost(app, data_disk.size, data_disk.disk_type)

    # ─── Whole environments ──────────────────────────────────────────

    def environment_cost(self, resource: Runtime | App, disk: PersistentDisk | None = None) -> float:
        """Hourly cost of a compute resource together with its attached disk."""
        match resource:
            case Runtime():
                disk_cost = self.disk_cost_hourly(disk) if disk is not None else 0.0
                return self.runtime_cost(resource) + disk_cost
            case App():
                return self.app_cost(resource, disk)
            case _:
                assert_never(resource)


def _dataproc_workers(config: DataprocConfig) -> tuple[int, int, str, int]:
    """Worker count, preemptible count, worker machine and worker disk.

    Preemptible workers are only counted on clusters that also have primary
    workers; worker shape falls back to the Dataproc defaults.
    """
    workers = max(config.number_of_workers, 0)
    if not workers:
        return 0, 0, DEFAULT_DATAPROC_MACHINE_TYPE, DEFAULT_DATAPROC_DISK_SIZE
    return (
        workers,
        max(config.number_of_preemptible_workers, 0),
        config.worker_machine_type or DEFAULT_DATAPROC_MACHINE_TYPE,
        config.worker_disk_size or DEFAULT_DATAPROC_DISK_SIZE,
    )
