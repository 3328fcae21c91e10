"""Centralized constants.

Endpoints, label keys and sizing defaults shared across the providers, the
cost engine and the reconciler.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Endpoints
# =============================================================================

DEFAULT_LEONARDO_URL: Final = "https://leonardo.dsde-prod.broadinstitute.org"
DEFAULT_STORAGE_URL: Final = "https://storage.googleapis.com"
DEFAULT_REQUEST_TIMEOUT: Final = 60.0

# =============================================================================
# Polling
# =============================================================================

DEFAULT_POLL_INTERVAL: Final = 30.0

# =============================================================================
# Error classification
# =============================================================================

USER_SCRIPT_FAILURE_MARKER: Final = "Userscript failed"
USER_SCRIPT_OUTPUT_OBJECT: Final = "userscript_output.txt"
# Bytes requested when previewing an object from storage.
OBJECT_PREVIEW_BYTES: Final = 20_000

# =============================================================================
# Sizing
# =============================================================================

# GCE boot disks are not user sized; this is only used for cost estimates.
DEFAULT_BOOT_DISK_SIZE: Final = 70
DEFAULT_DATA_DISK_SIZE: Final = 50
DEFAULT_GCE_MACHINE_TYPE: Final = "n1-standard-1"
DEFAULT_DATAPROC_MACHINE_TYPE: Final = "n1-standard-2"
# Master and worker disks of a Dataproc cluster.
DEFAULT_DATAPROC_DISK_SIZE: Final = 60

# Every Kubernetes app shares an always-on default nodepool of one node.
DEFAULT_NODEPOOL_MACHINE_TYPE: Final = "n1-standard-1"
DEFAULT_NODEPOOL_IPS: Final = 1

# Galaxy apps provision extra disks besides the user's data disk.
GALAXY_METADATA_DISK_SIZE: Final = 10
GALAXY_NODEPOOL_BOOT_DISK_SIZE: Final = 100
GALAXY_DEFAULT_NODEPOOL_BOOT_DISK_SIZE: Final = 100
