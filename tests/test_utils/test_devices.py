"""Tests for the host device inventory."""

import pytest

from phoenix.utils.devices import DeviceInventory


@pytest.mark.asyncio
async def test_scan_reports_presence_in_order(tmp_path):
    (tmp_path / "nvidiactl").touch()
    (tmp_path / "nvidia-caps").mkdir()
    (tmp_path / "nvidia-caps" / "nvidia-cap1").touch()
    inventory = DeviceInventory(tmp_path)

    found = await inventory.scan(["nvidia-caps/nvidia-cap1", "nvidia-uvm", "nvidiactl"])

    assert list(found.items()) == [
        ("nvidia-caps/nvidia-cap1", True),
        ("nvidia-uvm", False),
        ("nvidiactl", True),
    ]


def test_host_path_ignores_device_root(tmp_path):
    inventory = DeviceInventory(tmp_path)

    assert inventory.host_path("nvidia0") == "/dev/nvidia0"
    assert inventory.host_path("dri/card0") == "/dev/dri/card0"
