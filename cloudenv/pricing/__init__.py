from cloudenv.pricing.data import HOURS_PER_MONTH
from cloudenv.pricing.tables import (
    AzureDiskTier,
    AzureVmPrice,
    EphemeralIpPrices,
    GpuType,
    MachineType,
    PricingSource,
    PricingTables,
    RegionPrices,
    load_pricing,
)

__all__ = [
    "HOURS_PER_MONTH",
    "AzureDiskTier",
    "AzureVmPrice",
    "EphemeralIpPrices",
    "GpuType",
    "MachineType",
    "PricingSource",
    "PricingTables",
    "RegionPrices",
    "load_pricing",
]
