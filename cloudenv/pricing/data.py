"""Built-in price tables (USD).

The structure matches the TOML accepted by :func:`cloudenv.pricing.load_pricing`,
so an override file only needs the keys it changes. GCP compute prices are
per n1 vCPU-hour and per GB-hour of RAM; disk prices are per GB-month; GPU
prices are per GPU-hour. Azure VM prices are per hour, Azure standard HDD
disks are billed per size tier per month.
"""

from __future__ import annotations

from typing import Any

HOURS_PER_MONTH = 730


def _machines(family: str, shapes: dict[int, float]) -> dict[str, dict[str, float]]:
    return {f"{family}-{cpu}": {"cpu": cpu, "memory_gb": mem} for cpu, mem in shapes.items()}


MACHINE_TYPES: dict[str, dict[str, float]] = {
    **_machines("n1-standard", {1: 3.75, 2: 7.5, 4: 15, 8: 30, 16: 60, 32: 120, 64: 240, 96: 360}),
    **_machines("n1-highmem", {2: 13, 4: 26, 8: 52, 16: 104, 32: 208, 64: 416, 96: 624}),
    **_machines("n1-highcpu", {2: 1.8, 4: 3.6, 8: 7.2, 16: 14.4, 32: 28.8, 64: 57.6, 96: 86.4}),
}


def _gpus(name: str, gpu_type: str, limits: dict[int, tuple[int, float]]) -> list[dict[str, Any]]:
    return [
        {"name": name, "type": gpu_type, "num_gpus": n, "max_num_cpus": cpus, "max_mem": mem}
        for n, (cpus, mem) in limits.items()
    ]


GPU_TYPES: list[dict[str, Any]] = [
    *_gpus("NVIDIA Tesla T4", "nvidia-tesla-t4", {1: (24, 156), 2: (48, 312), 4: (96, 624)}),
    *_gpus("NVIDIA Tesla K80", "nvidia-tesla-k80", {1: (8, 52), 2: (16, 104), 4: (32, 208), 8: (64, 416)}),
    *_gpus("NVIDIA Tesla P4", "nvidia-tesla-p4", {1: (24, 156), 2: (48, 312), 4: (96, 624)}),
    *_gpus("NVIDIA Tesla V100", "nvidia-tesla-v100", {1: (12, 78), 2: (24, 156), 4: (48, 312), 8: (96, 624)}),
    *_gpus("NVIDIA Tesla P100", "nvidia-tesla-p100", {1: (16, 104), 2: (32, 208), 4: (64, 208)}),
]


def _region(
    cpu: float,
    ram_gb: float,
    preemptible_cpu: float,
    preemptible_ram_gb: float,
    disk: tuple[float, float, float],
    gpu: dict[str, tuple[float, float]],
) -> dict[str, Any]:
    standard, balanced, ssd = disk
    return {
        "cpu": cpu,
        "ram_gb": ram_gb,
        "preemptible_cpu": preemptible_cpu,
        "preemptible_ram_gb": preemptible_ram_gb,
        "monthly_disk": {"pd-standard": standard, "pd-balanced": balanced, "pd-ssd": ssd},
        "gpu": {t: price for t, (price, _) in gpu.items()},
        "preemptible_gpu": {t: price for t, (_, price) in gpu.items()},
    }


_US_GPUS = {
    "nvidia-tesla-t4": (0.35, 0.11),
    "nvidia-tesla-k80": (0.45, 0.135),
    "nvidia-tesla-p4": (0.60, 0.216),
    "nvidia-tesla-v100": (2.48, 0.74),
    "nvidia-tesla-p100": (1.46, 0.43),
}

REGIONS: dict[str, dict[str, Any]] = {
    "us-central1": _region(0.031611, 0.004237, 0.006655, 0.000892, (0.04, 0.10, 0.17), _US_GPUS),
    "us-east1": _region(0.031611, 0.004237, 0.006655, 0.000892, (0.04, 0.10, 0.17), _US_GPUS),
    "us-west1": _region(0.031611, 0.004237, 0.006655, 0.000892, (0.04, 0.10, 0.17), _US_GPUS),
    "us-east4": _region(
        0.035605, 0.004773, 0.0075, 0.001005, (0.044, 0.11, 0.187),
        {"nvidia-tesla-t4": (0.35, 0.11), "nvidia-tesla-p4": (0.60, 0.216)},
    ),
    "northamerica-northeast1": _region(
        0.034806, 0.004667, 0.00733, 0.00098, (0.044, 0.11, 0.187),
        {"nvidia-tesla-t4": (0.35, 0.11), "nvidia-tesla-p4": (0.60, 0.216)},
    ),
    "southamerica-east1": _region(
        0.050217, 0.006731, 0.01058, 0.001418, (0.06, 0.15, 0.26),
        {"nvidia-tesla-t4": (0.49, 0.154)},
    ),
    "europe-west1": _region(
        0.034773, 0.004661, 0.00732, 0.00098, (0.04, 0.10, 0.17),
        {
            "nvidia-tesla-t4": (0.35, 0.11),
            "nvidia-tesla-k80": (0.49, 0.147),
            "nvidia-tesla-p100": (1.60, 0.47),
            "nvidia-tesla-v100": (2.55, 0.76),
        },
    ),
    "europe-west2": _region(
        0.040702, 0.005456, 0.00857, 0.00115, (0.048, 0.12, 0.204),
        {"nvidia-tesla-t4": (0.41, 0.129)},
    ),
    "asia-east1": _region(
        0.036602, 0.004906, 0.00771, 0.00103, (0.04, 0.10, 0.17),
        {
            "nvidia-tesla-t4": (0.35, 0.11),
            "nvidia-tesla-k80": (0.49, 0.147),
            "nvidia-tesla-p100": (1.60, 0.47),
            "nvidia-tesla-v100": (2.55, 0.76),
        },
    ),
    "australia-southeast1": _region(
        0.044856, 0.006012, 0.00945, 0.00127, (0.054, 0.135, 0.23),
        {"nvidia-tesla-t4": (0.44, 0.138), "nvidia-tesla-p4": (0.65, 0.234)},
    ),
}

EPHEMERAL_IP = {"standard": 0.004, "preemptible": 0.002}

# Dataproc service fee, per vCPU-hour, on top of the VM itself.
DATAPROC_CPU = 0.01

_AZURE_EASTUS_VMS = {
    "Standard_DS2_v2": 0.146,
    "Standard_DS3_v2": 0.293,
    "Standard_DS4_v2": 0.585,
    "Standard_DS5_v2": 1.17,
    "Standard_NC6s_v3": 3.06,
    "Standard_NC4as_T4_v3": 0.526,
}

_AZURE_STANDARD_HDD = [
    ("S4", 32, 1.54),
    ("S6", 64, 3.01),
    ("S10", 128, 5.89),
    ("S15", 256, 11.33),
    ("S20", 512, 21.76),
    ("S30", 1024, 40.96),
    ("S40", 2048, 81.92),
    ("S50", 4096, 163.84),
]


def _azure_region(factor: float) -> tuple[dict[str, float], list[dict[str, Any]]]:
    vms = {name: round(price * factor, 4) for name, price in _AZURE_EASTUS_VMS.items()}
    tiers = [
        {"name": name, "size_gb": size, "monthly": round(monthly * factor, 2)}
        for name, size, monthly in _AZURE_STANDARD_HDD
    ]
    return vms, tiers


_AZURE_FACTORS = {
    "eastus": 1.0,
    "eastus2": 1.0,
    "centralus": 1.06,
    "southcentralus": 1.04,
    "westus2": 1.0,
    "canadacentral": 1.09,
    "westeurope": 1.12,
}

AZURE_VMS: dict[str, dict[str, float]] = {}
AZURE_DISK_TIERS: dict[str, list[dict[str, Any]]] = {}
for _name, _factor in _AZURE_FACTORS.items():
    AZURE_VMS[_name], AZURE_DISK_TIERS[_name] = _azure_region(_factor)


DEFAULT_PRICING: dict[str, Any] = {
    "machine_types": MACHINE_TYPES,
    "gpu_types": GPU_TYPES,
    "regions": REGIONS,
    "ephemeral_ip": EPHEMERAL_IP,
    "dataproc_cpu": DATAPROC_CPU,
    "azure": {"vms": AZURE_VMS, "disk_tiers": AZURE_DISK_TIERS},
}
