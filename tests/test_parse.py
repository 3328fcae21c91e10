from __future__ import annotations

from datetime import UTC, datetime

import pytest

from cloudenv.api.model import (
    AzureConfig,
    DataprocConfig,
    GceConfig,
    GceWithPdConfig,
    GpuConfig,
    ResourceError,
)
from cloudenv.exceptions import ControlPlaneError
from cloudenv.providers.leonardo.parse import (
    EPOCH,
    parse_app,
    parse_datetime,
    parse_disk,
    parse_errors,
    parse_runtime,
    parse_runtime_config,
)
from tests.conftest import app_json, at, disk_json, runtime_json

pytestmark = [pytest.mark.unit]


class TestDatetime:
    def test_zulu(self):
        assert parse_datetime("2024-01-01T00:05:00Z") == at(5)

    def test_naive_is_utc(self):
        assert parse_datetime("2024-01-01T00:00:00") == datetime(2024, 1, 1, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_missing_or_invalid(self, value):
        assert parse_datetime(value) is None


class TestRuntimeConfig:
    def test_legacy_gce(self):
        config = parse_runtime_config({
            "cloudService": "GCE",
            "machineType": "n1-standard-4",
            "diskSize": 100,
            "zone": "us-central1-a",
            "gpuConfig": {"gpuType": "nvidia-tesla-t4", "numOfGpus": 2},
        })
        assert config == GceConfig(
            machine_type="n1-standard-4", disk_size=100, zone="us-central1-a",
            gpu_config=GpuConfig(gpu_type="nvidia-tesla-t4", num_gpus=2),
        )
        assert config.region == "us-central1"

    def test_gce_with_persistent_disk(self):
        config = parse_runtime_config({
            "cloudService": "GCE",
            "machineType": "n1-standard-4",
            "persistentDiskId": 12,
            "bootDiskSize": 70,
            "zone": "europe-west1-b",
        })
        assert isinstance(config, GceWithPdConfig)
        assert config.persistent_disk_id == 12

    def test_dataproc(self):
        config = parse_runtime_config({
            "cloudService": "DATAPROC",
            "masterMachineType": "n1-standard-4",
            "masterDiskSize": 150,
            "region": "us-central1",
            "numberOfWorkers": 2,
            "workerMachineType": "n1-standard-8",
            "workerDiskSize": 100,
            "numberOfPreemptibleWorkers": 1,
        })
        assert isinstance(config, DataprocConfig)
        assert (config.number_of_workers, config.number_of_preemptible_workers) == (2, 1)

    def test_azure(self):
        config = parse_runtime_config({
            "cloudService": "AZURE_VM", "machineType": "Standard_DS2_v2", "persistentDiskId": 3, "region": "eastus",
        })
        assert config == AzureConfig(machine_type="Standard_DS2_v2", persistent_disk_id=3, region="eastus")

    def test_unknown_service(self):
        with pytest.raises(ControlPlaneError, match="TPU"):
            parse_runtime_config({"cloudService": "TPU"})


def test_parse_errors():
    errors = parse_errors([
        {"errorMessage": "boom", "errorCode": 500, "timestamp": "t1"},
        {"errorMessage": "quota", "googleErrorCode": 403},
    ])
    assert errors == (
        ResourceError(message="boom", code=500, timestamp="t1"),
        ResourceError(message="quota", code=403),
    )
    assert parse_errors(None) == ()


class TestParseRuntime:
    def test_fields(self):
        runtime = parse_runtime(runtime_json(
            "rt", status="PreStarting", created=7, staging_bucket="bucket",
            errors=[{"errorMessage": "Userscript failed"}],
        ))
        assert runtime.name == "rt"
        assert runtime.status == "Starting"
        assert runtime.raw_status == "PreStarting"
        assert runtime.created_date == at(7)
        assert runtime.cloud_provider == "GCP"
        assert runtime.google_project == "proj"
        assert runtime.tool == "Jupyter"
        assert runtime.staging_bucket == "bucket"
        assert runtime.errors[0].message == "Userscript failed"

    def test_labels_are_read_only(self):
        runtime = parse_runtime(runtime_json())
        with pytest.raises(TypeError):
            runtime.labels["tool"] = "RStudio"  # type: ignore[index]

    def test_azure(self):
        runtime = parse_runtime(runtime_json(
            provider="AZURE", resource="mrg",
            runtime_config={"cloudService": "AZURE_VM", "machineType": "Standard_DS2_v2", "persistentDiskId": 4},
            workspace_id="ws-id",
        ))
        assert runtime.cloud_provider == "AZURE"
        assert runtime.google_project is None
        assert runtime.workspace_id == "ws-id"
        assert runtime.disk_id == 4

    def test_missing_created_date_sorts_first(self):
        raw = runtime_json()
        raw["auditInfo"] = {"creator": "user@example.org"}
        assert parse_runtime(raw).created_date == EPOCH

    def test_unknown_cloud_provider(self):
        with pytest.raises(ControlPlaneError):
            parse_runtime(runtime_json(provider="AWS"))


class TestParseApp:
    def test_fields(self):
        app = parse_app(app_json("g", "galaxy", status="PREDELETING", disk_name="galaxy-disk"))
        assert app.app_type == "GALAXY"
        assert app.status == "Deleting"
        assert app.raw_status == "PREDELETING"
        assert app.disk_name == "galaxy-disk"
        assert app.kubernetes_runtime_config is not None
        assert app.kubernetes_runtime_config.machine_type == "n1-highmem-8"

    def test_empty_disk_name_is_none(self):
        raw = app_json()
        raw["diskName"] = ""
        assert parse_app(raw).disk_name is None

    def test_without_kubernetes_config(self):
        raw = app_json()
        del raw["kubernetesRuntimeConfig"]
        assert parse_app(raw).kubernetes_runtime_config is None


class TestParseDisk:
    def test_fields(self):
        disk = parse_disk(disk_json(
            "pd", id=9, status="Deleted", labels={"saturnApplication": "galaxy", "saturnWorkspaceName": "ws"},
        ))
        assert disk.id == 9
        assert disk.status == "Deleting"
        assert disk.app_type == "GALAXY"
        assert disk.workspace_name == "ws"
        assert disk.region == "us-central1"

    def test_unlabelled(self):
        disk = parse_disk(disk_json())
        assert disk.app_type is None
        assert disk.workspace_name is None
