from __future__ import annotations

from dataclasses import replace

import pytest

from cloudenv.api.status import (
    converted_runtime_status,
    gpu_display_name,
    is_busy,
    is_compute_pausable,
    is_resource_deletable,
    is_setting_up,
    normalize_disk_status,
    normalize_status,
    status_for_display,
)
from tests.conftest import make_app, make_disk, make_runtime

pytestmark = [pytest.mark.unit]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Running", "Running"),
        ("RUNNING", "Running"),
        ("PreCreating", "Creating"),
        ("PROVISIONING", "Creating"),
        ("PRECREATING", "Creating"),
        ("PreStarting", "Starting"),
        ("PreStopping", "Stopping"),
        ("Stopped", "Stopped"),
        ("PreDeleting", "Deleting"),
        ("PREDELETING", "Deleting"),
        ("DELETED", "Deleting"),
        ("LeoReconfiguring", "Updating"),
        ("Error", "Error"),
        ("UNSPECIFIED", "Unknown"),
        ("", "Unknown"),
        (None, "Unknown"),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("Ready", "Ready"), ("READY", "Ready"), ("Deleted", "Deleting"), ("Failed", "Failed"), ("weird", "Unknown")],
)
def test_normalize_disk_status(raw, expected):
    assert normalize_disk_status(raw) == expected


class TestDeletable:
    def test_runtime(self):
        assert is_resource_deletable(make_runtime(status="Stopped"))
        assert is_resource_deletable(make_runtime(status="Error"))
        assert not is_resource_deletable(make_runtime(status="Creating"))
        assert not is_resource_deletable(make_runtime(status="Deleting"))

    def test_app(self):
        assert is_resource_deletable(make_app(status="Running"))
        assert is_resource_deletable(make_app(status="Error"))
        assert not is_resource_deletable(make_app(status="Stopped"))
        assert not is_resource_deletable(replace(make_app(), raw_status="PROVISIONING"))

    def test_disk(self):
        assert is_resource_deletable(make_disk(status="Ready"))
        assert is_resource_deletable(make_disk(status="Failed"))
        assert not is_resource_deletable(make_disk(status="Creating"))


class TestPausable:
    def test_runtime(self):
        assert is_compute_pausable(make_runtime(status="Running"))
        assert not is_compute_pausable(make_runtime(status="Stopped"))

    def test_app(self):
        assert is_compute_pausable(make_app(status="Running"))
        assert is_compute_pausable(make_app(status="Starting"))
        assert not is_compute_pausable(make_app(status="Error"))


def test_is_busy():
    assert is_busy(make_runtime(status="Creating"))
    assert is_busy(make_app(status="Stopping"))
    assert not is_busy(make_runtime(status="Running"))
    assert not is_busy(make_runtime(status="Error"))


def test_is_setting_up():
    assert is_setting_up(replace(make_app(), raw_status="PROVISIONING"))
    assert not is_setting_up(make_app())
    assert not is_setting_up(None)


def test_converted_runtime_status():
    runtime = make_runtime(status="Running")
    assert converted_runtime_status(runtime) == "Running"
    assert converted_runtime_status(replace(runtime, patch_in_progress=True)) == "LeoReconfiguring"
    assert converted_runtime_status(None) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("Starting", "Resuming"), ("PreStopping", "Pausing"), ("STOPPED", "Paused"), ("RUNNING", "Running")],
)
def test_status_for_display(raw, expected):
    assert status_for_display(raw) == expected


def test_gpu_display_name():
    assert gpu_display_name("nvidia-tesla-v100") == "NVIDIA Tesla V100"
    assert gpu_display_name("nvidia-tesla-t4") == "NVIDIA Tesla T4"
