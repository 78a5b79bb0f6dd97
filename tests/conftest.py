"""Shared fixtures."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from phoenix.models.config import HostConfig, PhoenixConfig, ProvisionerConfig
from phoenix.utils.pct import CommandResult


@pytest.fixture
def no_sleep():
    """Stand-in for asyncio.sleep that returns immediately."""
    return AsyncMock()


@pytest.fixture
def pct():
    """Mocked pct client: containers exist and run, commands succeed."""
    client = MagicMock()
    client.create = AsyncMock(return_value=CommandResult(0))
    client.start = AsyncMock(return_value=CommandResult(0))
    client.stop = AsyncMock(return_value=CommandResult(0))
    client.destroy = AsyncMock(return_value=CommandResult(0))
    client.status = AsyncMock(return_value="running")
    client.exists = AsyncMock(return_value=True)
    client.exec = AsyncMock(return_value=CommandResult(0, "systemd\n"))
    return client


@pytest.fixture
def host_dirs(tmp_path) -> dict:
    """Temporary host config and device directories."""
    lxc_dir = tmp_path / "lxc"
    dev_dir = tmp_path / "dev"
    lxc_dir.mkdir()
    dev_dir.mkdir()
    return {"lxc": lxc_dir, "dev": dev_dir}


@pytest.fixture
def phoenix_config(host_dirs) -> PhoenixConfig:
    """Configuration pointing at the temporary host directories."""
    return PhoenixConfig(
        provisioner=ProvisionerConfig(stabilization_seconds=0),
        host=HostConfig(lxc_config_dir=str(host_dirs["lxc"]), dev_root=str(host_dirs["dev"])),
    )


@pytest.fixture
def container_entry() -> dict:
    """A valid lxc_configs entry."""
    return {
        "name": "gpu-worker",
        "memory_mb": 4096,
        "cores": 4,
        "template": "local:vztmpl/ubuntu-24.04-standard_24.04-2_amd64.tar.zst",
        "storage_pool": "local-lvm",
        "storage_size_gb": 32,
        "network_config": {"name": "eth0", "bridge": "vmbr0", "ip": "10.0.0.90/24", "gw": "10.0.0.1"},
        "features": "nesting=1",
        "gpu_assignment": "0,1",
    }


@pytest.fixture
def config_dir(tmp_path, host_dirs, container_entry) -> Path:
    """Config directory with config.yaml and a containers file."""
    directory = tmp_path / "configs"
    directory.mkdir()
    containers_file = tmp_path / "lxc_configs.json"
    containers_file.write_text(json.dumps({"lxc_configs": {"900": container_entry}}))
    (directory / "config.yaml").write_text(
        "provisioner:\n"
        "  log_level: debug\n"
        "  stabilization_seconds: 0\n"
        "host:\n"
        f"  lxc_config_dir: {host_dirs['lxc']}\n"
        f"  dev_root: {host_dirs['dev']}\n"
        f"  containers_file: {containers_file}\n"
    )
    return directory
