"""Immutable price tables and their TOML overlay.

Tables are built once (``PricingTables.default()`` or ``load_pricing(path)``)
and handed to :class:`cloudenv.cost.CostEngine`. Lookups never raise: unknown
regions, machine types, GPU models or disk classes come back as ``nan`` (or
``None`` for records) so callers can show "unknown" instead of a wrong zero.
"""

from __future__ import annotations

import math
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from cloudenv.config import deep_merge
from cloudenv.observability.logger import logger
from cloudenv.pricing.data import DEFAULT_PRICING

log = logger.bind(component="pricing")

NAN = math.nan


# =============================================================================
# Models
# =============================================================================


@dataclass(frozen=True, slots=True)
class MachineType:
    name: str
    cpu: float
    memory_gb: float


@dataclass(frozen=True, slots=True)
class GpuType:
    """A GPU model at a given count, with the largest machine it can attach to."""

    name: str
    type: str
    num_gpus: int
    max_num_cpus: int
    max_mem: float


@dataclass(frozen=True, slots=True)
class RegionPrices:
    region: str
    cpu: float
    preemptible_cpu: float
    ram_gb: float
    preemptible_ram_gb: float
    monthly_disk: Mapping[str, float]
    gpu: Mapping[str, float]
    preemptible_gpu: Mapping[str, float]


@dataclass(frozen=True, slots=True)
class AzureVmPrice:
    region: str
    machine_type: str
    hourly: float


@dataclass(frozen=True, slots=True)
class AzureDiskTier:
    name: str
    size_gb: int
    monthly: float


@dataclass(frozen=True, slots=True)
class EphemeralIpPrices:
    standard: float
    preemptible: float


@runtime_checkable
class PricingSource(Protocol):
    """What the cost engine needs from a price table."""

    @property
    def ephemeral_ip(self) -> EphemeralIpPrices: ...

    @property
    def dataproc_cpu(self) -> float: ...

    def machine_type(self, name: str) -> MachineType | None: ...

    def cpu_price(self, region: str, *, preemptible: bool = False) -> float: ...

    def ram_price(self, region: str, *, preemptible: bool = False) -> float: ...

    def gpu_price(self, region: str, gpu_type: str, *, preemptible: bool = False) -> float: ...

    def monthly_disk_price(self, region: str, disk_type: str) -> float: ...

    def azure_vm(self, region: str, machine_type: str) -> AzureVmPrice | None: ...

    def azure_disk_tier(self, region: str, size_gb: int) -> AzureDiskTier | None: ...


# =============================================================================
# Parsing helpers (pure functions)
# =============================================================================


def _safe_float(value: Any) -> float:
    """Parse float, nan on failure."""
    try:
        return float(value) if value is not None else NAN
    except (ValueError, TypeError):
        return NAN


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except (ValueError, TypeError):
        return default


def _frozen_prices(raw: Mapping[str, Any] | None) -> Mapping[str, float]:
    return MappingProxyType({str(k): _safe_float(v) for k, v in (raw or {}).items()})


def _parse_region(region: str, raw: Mapping[str, Any]) -> RegionPrices:
    return RegionPrices(
        region=region,
        cpu=_safe_float(raw.get("cpu")),
        preemptible_cpu=_safe_float(raw.get("preemptible_cpu")),
        ram_gb=_safe_float(raw.get("ram_gb")),
        preemptible_ram_gb=_safe_float(raw.get("preemptible_ram_gb")),
        monthly_disk=_frozen_prices(raw.get("monthly_disk")),
        gpu=_frozen_prices(raw.get("gpu")),
        preemptible_gpu=_frozen_prices(raw.get("preemptible_gpu")),
    )


def _parse_tiers(raw: list[Mapping[str, Any]]) -> tuple[AzureDiskTier, ...]:
    tiers = (
        AzureDiskTier(
            name=str(t.get("name", "")),
            size_gb=_safe_int(t.get("size_gb")),
            monthly=_safe_float(t.get("monthly")),
        )
        for t in raw
    )
    return tuple(sorted(tiers, key=lambda t: t.size_gb))


# =============================================================================
# Tables
# =============================================================================


@dataclass(frozen=True, slots=True)
class PricingTables:
    machine_types: Mapping[str, MachineType]
    gpu_types: tuple[GpuType, ...]
    regions: Mapping[str, RegionPrices]
    ephemeral_ip: EphemeralIpPrices
    dataproc_cpu: float
    azure_vms: Mapping[str, Mapping[str, float]]
    azure_disk_tiers: Mapping[str, tuple[AzureDiskTier, ...]]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PricingTables:
        machine_types = {
            name: MachineType(
                name=name,
                cpu=_safe_float(entry.get("cpu")),
                memory_gb=_safe_float(entry.get("memory_gb")),
            )
            for name, entry in raw.get("machine_types", {}).items()
        }
        gpu_types = tuple(
            GpuType(
                name=str(g.get("name", "")),
                type=str(g.get("type", "")),
                num_gpus=_safe_int(g.get("num_gpus"), 1),
                max_num_cpus=_safe_int(g.get("max_num_cpus")),
                max_mem=_safe_float(g.get("max_mem")),
            )
            for g in raw.get("gpu_types", [])
        )
        regions = {
            name.lower(): _parse_region(name.lower(), entry)
            for name, entry in raw.get("regions", {}).items()
        }
        ip = raw.get("ephemeral_ip", {})
        azure = raw.get("azure", {})
        return cls(
            machine_types=MappingProxyType(machine_types),
            gpu_types=gpu_types,
            regions=MappingProxyType(regions),
            ephemeral_ip=EphemeralIpPrices(
                standard=_safe_float(ip.get("standard")),
                preemptible=_safe_float(ip.get("preemptible")),
            ),
            dataproc_cpu=_safe_float(raw.get("dataproc_cpu")),
            azure_vms=MappingProxyType({
                region.lower(): _frozen_prices(prices)
                for region, prices in azure.get("vms", {}).items()
            }),
            azure_disk_tiers=MappingProxyType({
                region.lower(): _parse_tiers(tiers)
                for region, tiers in azure.get("disk_tiers", {}).items()
            }),
        )

    @classmethod
    def default(cls) -> PricingTables:
        return _default_tables()

    # ─── Lookups ─────────────────────────────────────────────────────

    def machine_type(self, name: str) -> MachineType | None:
        return self.machine_types.get(name)

    def region(self, region: str) -> RegionPrices | None:
        return self.regions.get(region.strip().lower()) if region else None

    def cpu_price(self, region: str, *, preemptible: bool = False) -> float:
        match self.region(region):
            case None:
                log.warning("No compute prices for region {region}", region=region)
                return NAN
            case prices:
                return prices.preemptible_cpu if preemptible else prices.cpu

    def ram_price(self, region: str, *, preemptible: bool = False) -> float:
        match self.region(region):
            case None:
                return NAN
            case prices:
                return prices.preemptible_ram_gb if preemptible else prices.ram_gb

    def gpu_price(self, region: str, gpu_type: str, *, preemptible: bool = False) -> float:
        prices = self.region(region)
        if prices is None:
            return NAN
        table = prices.preemptible_gpu if preemptible else prices.gpu
        if gpu_type not in table:
            log.warning("No price for GPU {gpu} in {region}", gpu=gpu_type, region=region)
        return table.get(gpu_type, NAN)

    def monthly_disk_price(self, region: str, disk_type: str) -> float:
        prices = self.region(region)
        if prices is None:
            return NAN
        return prices.monthly_disk.get(disk_type, NAN)

    def azure_vm(self, region: str, machine_type: str) -> AzureVmPrice | None:
        prices = self.azure_vms.get((region or "").lower(), {})
        if machine_type not in prices:
            log.warning("No Azure price for {machine} in {region}", machine=machine_type, region=region)
            return None
        return AzureVmPrice(region=region.lower(), machine_type=machine_type, hourly=prices[machine_type])

    def azure_disk_tier(self, region: str, size_gb: int) -> AzureDiskTier | None:
        """Smallest tier that fits ``size_gb``; Azure bills the whole tier."""
        tiers = self.azure_disk_tiers.get((region or "").lower(), ())
        return next((t for t in tiers if t.size_gb >= size_gb), None)

    def valid_gpu_types(self, cpu: int, memory_gb: float) -> tuple[GpuType, ...]:
        return tuple(
            g for g in self.gpu_types
            if g.max_num_cpus >= cpu and g.max_mem >= memory_gb
        )


@lru_cache(maxsize=1)
def _default_tables() -> PricingTables:
    return PricingTables.from_dict(DEFAULT_PRICING)


def load_pricing(path: Path | str | None = None) -> PricingTables:
    """Built-in tables, with the TOML file at ``path`` merged on top.

    Tables merge key by key; arrays (``gpu_types``, Azure disk tiers) replace
    the built-in ones wholesale.
    """
    if path is None:
        return PricingTables.default()
    with Path(path).open("rb") as f:
        overlay = tomllib.load(f)
    log.debug("Loaded pricing overlay from {path}", path=str(path))
    return PricingTables.from_dict(deep_merge(DEFAULT_PRICING, overlay))
