from __future__ import annotations

import dataclasses
import math
from pathlib import Path

import pytest

from cloudenv.cost import CostEngine
from cloudenv.pricing import PricingTables, load_pricing

pytestmark = [pytest.mark.unit]


class TestDefaultTables:
    def test_cached(self):
        assert PricingTables.default() is PricingTables.default()

    def test_immutable(self):
        tables = PricingTables.default()
        with pytest.raises(TypeError):
            tables.regions["us-central1"] = None  # type: ignore[index]
        with pytest.raises(dataclasses.FrozenInstanceError):
            tables.dataproc_cpu = 0.0  # type: ignore[misc]

    def test_machine_types(self):
        machine = PricingTables.default().machine_type("n1-highmem-4")
        assert machine is not None
        assert (machine.cpu, machine.memory_gb) == (4, 26)
        assert PricingTables.default().machine_type("e2-micro") is None

    def test_region_lookup_is_case_insensitive(self):
        tables = PricingTables.default()
        assert tables.cpu_price("US-CENTRAL1") == tables.cpu_price("us-central1")

    def test_unknown_region_is_nan(self):
        tables = PricingTables.default()
        assert tables.region("") is None
        assert math.isnan(tables.cpu_price("mars-north1"))
        assert math.isnan(tables.ram_price("mars-north1", preemptible=True))
        assert math.isnan(tables.monthly_disk_price("mars-north1", "pd-standard"))
        assert math.isnan(tables.gpu_price("mars-north1", "nvidia-tesla-t4"))

    def test_regional_gpu_availability(self):
        tables = PricingTables.default()
        assert tables.gpu_price("europe-west2", "nvidia-tesla-t4") == pytest.approx(0.41)
        assert math.isnan(tables.gpu_price("europe-west2", "nvidia-tesla-v100"))

    def test_preemptible_is_cheaper(self):
        tables = PricingTables.default()
        assert tables.cpu_price("us-central1", preemptible=True) < tables.cpu_price("us-central1")
        assert tables.gpu_price("us-central1", "nvidia-tesla-v100", preemptible=True) < tables.gpu_price(
            "us-central1", "nvidia-tesla-v100"
        )


class TestAzure:
    def test_vm_price(self):
        price = PricingTables.default().azure_vm("EastUS", "Standard_DS3_v2")
        assert price is not None
        assert price.hourly == pytest.approx(0.293)
        assert price.region == "eastus"

    def test_regional_factor(self):
        tables = PricingTables.default()
        east = tables.azure_vm("eastus", "Standard_DS2_v2")
        west_eu = tables.azure_vm("westeurope", "Standard_DS2_v2")
        assert east is not None and west_eu is not None
        assert west_eu.hourly > east.hourly

    def test_unknown_vm(self):
        assert PricingTables.default().azure_vm("eastus", "Standard_M416ms_v2") is None
        assert PricingTables.default().azure_vm("antarctica", "Standard_DS2_v2") is None

    @pytest.mark.parametrize(
        ("size", "tier"),
        [(1, "S4"), (32, "S4"), (33, "S6"), (128, "S10"), (129, "S15"), (4096, "S50")],
    )
    def test_smallest_tier_that_fits(self, size: int, tier: str):
        found = PricingTables.default().azure_disk_tier("eastus", size)
        assert found is not None
        assert found.name == tier

    def test_larger_than_any_tier(self):
        assert PricingTables.default().azure_disk_tier("eastus", 5000) is None


class TestValidGpuTypes:
    def test_small_machine_gets_everything_single_gpu(self):
        valid = PricingTables.default().valid_gpu_types(4, 15)
        assert {g.type for g in valid if g.num_gpus == 1} == {
            "nvidia-tesla-t4",
            "nvidia-tesla-k80",
            "nvidia-tesla-p4",
            "nvidia-tesla-v100",
            "nvidia-tesla-p100",
        }

    def test_large_machine_needs_more_gpus(self):
        valid = PricingTables.default().valid_gpu_types(64, 240)
        k80 = [g.num_gpus for g in valid if g.type == "nvidia-tesla-k80"]
        assert k80 == [8]

    def test_huge_machine(self):
        valid = PricingTables.default().valid_gpu_types(96, 624)
        assert {g.type for g in valid} == {"nvidia-tesla-t4", "nvidia-tesla-p4", "nvidia-tesla-v100"}


class TestLoadPricing:
    def test_no_path_is_default(self):
        assert load_pricing() is PricingTables.default()

    def test_overlay_merges(self, tmp_path: Path):
        overlay = tmp_path / "prices.toml"
        overlay.write_text(
            '[regions.us-central1]\ncpu = 1.5\n\n'
            '[regions.us-central1.monthly_disk]\n"pd-ssd" = 0.5\n\n'
            '[machine_types.custom-6]\ncpu = 6\nmemory_gb = 20\n'
        )
        tables = load_pricing(overlay)
        assert tables.cpu_price("us-central1") == 1.5
        assert tables.ram_price("us-central1") == pytest.approx(0.004237)
        assert tables.monthly_disk_price("us-central1", "pd-ssd") == 0.5
        assert tables.monthly_disk_price("us-central1", "pd-standard") == pytest.approx(0.04)
        assert tables.machine_type("custom-6") is not None
        assert tables.machine_type("n1-standard-1") is not None

    def test_overlay_adds_region(self, tmp_path: Path):
        overlay = tmp_path / "prices.toml"
        overlay.write_text(
            '[regions.me-west1]\ncpu = 0.04\nram_gb = 0.005\n'
            'preemptible_cpu = 0.01\npreemptible_ram_gb = 0.001\n'
        )
        tables = load_pricing(str(overlay))
        assert tables.cpu_price("me-west1") == 0.04
        assert math.isnan(tables.monthly_disk_price("me-west1", "pd-standard"))

    def test_overlay_replaces_arrays(self, tmp_path: Path):
        overlay = tmp_path / "prices.toml"
        overlay.write_text(
            '[[azure.disk_tiers.eastus]]\nname = "X1"\nsize_gb = 10\nmonthly = 1.0\n'
        )
        tables = load_pricing(overlay)
        assert tables.azure_disk_tier("eastus", 5).name == "X1"
        assert tables.azure_disk_tier("eastus", 20) is None
        assert tables.azure_disk_tier("westus2", 20) is not None

    def test_bad_values_become_nan(self, tmp_path: Path):
        overlay = tmp_path / "prices.toml"
        overlay.write_text('[regions.us-central1]\ncpu = "cheap"\n')
        assert math.isnan(load_pricing(overlay).cpu_price("us-central1"))

    def test_bad_machine_shape_prices_unknown(self, tmp_path: Path):
        overlay = tmp_path / "prices.toml"
        overlay.write_text('[machine_types.n1-standard-4]\ncpu = "four"\n')
        tables = load_pricing(overlay)

        assert math.isnan(tables.machine_type("n1-standard-4").cpu)
        assert math.isnan(CostEngine(tables).machine_price("us-central1", "n1-standard-4"))

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_pricing(tmp_path / "missing.toml")
