"""Tests for the pct wrapper."""

import subprocess
from unittest.mock import AsyncMock, patch

import pytest

from phoenix.utils.pct import CommandResult, PctClient, parse_status


def test_parse_status():
    assert parse_status("status: running\n") == "running"
    assert parse_status("status: stopped") == "stopped"
    assert parse_status("garbage") == "unknown"


@pytest.mark.asyncio
class TestPctClient:
    """Test command construction."""

    async def test_create_command_line(self):
        client = PctClient(create_timeout=300)
        with patch("phoenix.utils.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(0)

            await client.create(
                900, "local:vztmpl/debian.tar.zst",
                hostname="worker", memory=2048, cores=2, storage="local-lvm",
                rootfs_size=16, net0="name=eth0,bridge=vmbr0,ip=10.0.0.9/24,gw=10.0.0.1",
                nameserver="8.8.8.8", features="nesting=1",
            )

            args, kwargs = mock_run.call_args
            assert args[0] == [
                "pct", "create", "900", "local:vztmpl/debian.tar.zst",
                "--hostname", "worker",
                "--memory", "2048",
                "--cores", "2",
                "--storage", "local-lvm",
                "--rootfs", "16",
                "--net0", "name=eth0,bridge=vmbr0,ip=10.0.0.9/24,gw=10.0.0.1",
                "--nameserver", "8.8.8.8",
                "--features", "nesting=1",
            ]
            assert kwargs["timeout"] == 300

    async def test_status_of_unknown_container_is_absent(self):
        client = PctClient()
        with patch("phoenix.utils.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(2, "", "Configuration file does not exist")

            assert await client.status(123) == "absent"

    async def test_transient_status_failure_raises(self):
        client = PctClient()
        with patch("phoenix.utils.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(255, "", "trying to acquire lock...\ncan't lock file - got timeout")

            with pytest.raises(subprocess.CalledProcessError) as exc_info:
                await client.status(900)
            assert "got timeout" in exc_info.value.stderr

    async def test_exists(self):
        client = PctClient()
        with patch("phoenix.utils.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(0, "arch: amd64\n")
            assert await client.exists(900) is True

            mock_run.return_value = CommandResult(2, "", "Configuration file 'nodes/pve/lxc/901.conf' does not exist")
            assert await client.exists(901) is False

            mock_run.return_value = CommandResult(255, "", "ipcc_send_rec[1] failed: Connection refused")
            with pytest.raises(subprocess.CalledProcessError):
                await client.exists(902)

    async def test_exec_does_not_raise_on_failure(self):
        client = PctClient()
        with patch("phoenix.utils.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(1, "", "ping: unknown host")

            result = await client.exec(900, ["bash", "-c", "ping -c 1 example"])

            assert result.returncode == 1
            args, kwargs = mock_run.call_args
            assert args[0] == ["pct", "exec", "900", "--", "bash", "-c", "ping -c 1 example"]
            assert kwargs["check"] is False
