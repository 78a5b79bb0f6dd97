"""Tests for in-container command execution."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from phoenix.errors import StageFailure, TransientExecError
from phoenix.models.config import RetryConfig
from phoenix.provisioner.executor import RemoteExecutor
from phoenix.provisioner.scripts import network_check_script
from phoenix.utils.pct import CommandResult
from phoenix.utils.retry import RetryEngine


@pytest.fixture
def lifecycle():
    provider = MagicMock()
    provider.get_status = AsyncMock(return_value="running")
    provider.start = AsyncMock()
    return provider


@pytest.fixture
def executor(pct, lifecycle, no_sleep):
    return RemoteExecutor(
        pct=pct,
        lifecycle=lifecycle,
        retry_engine=RetryEngine(sleep=no_sleep),
        retry=RetryConfig(),
        stabilization_seconds=10,
    )


@pytest.mark.asyncio
class TestRemoteExecutor:
    """Test RemoteExecutor."""

    async def test_runs_script_in_running_container(self, executor, pct, lifecycle):
        script = network_check_script()

        result = await executor.run(900, script)

        assert result.returncode == 0
        pct.exec.assert_awaited_once_with(900, script.argv, timeout=None)
        lifecycle.start.assert_not_awaited()

    async def test_retries_nonzero_exit(self, executor, pct, no_sleep):
        pct.exec.side_effect = [CommandResult(1, "", "no route"), CommandResult(0, "ok")]

        result = await executor.run(900, ["true"])

        assert result.stdout == "ok"
        assert pct.exec.await_count == 2
        no_sleep.assert_awaited_once_with(10)

    async def test_exhaustion_carries_output(self, executor, pct):
        pct.exec.return_value = CommandResult(1, "[ERROR] Network ping failed", "ping: timeout")

        with pytest.raises(TransientExecError) as exc_info:
            await executor.run(900, network_check_script())

        assert pct.exec.await_count == 3
        assert exc_info.value.stdout == "[ERROR] Network ping failed"
        assert exc_info.value.stderr == "ping: timeout"

    async def test_stopped_container_is_started_and_stabilized(self, executor, lifecycle, no_sleep):
        lifecycle.get_status.side_effect = ["stopped", "running"]

        await executor.run(900, ["true"])

        lifecycle.start.assert_awaited_once_with(900)
        no_sleep.assert_awaited_once_with(10)

    async def test_container_that_will_not_stay_up(self, executor, pct, lifecycle):
        lifecycle.get_status.return_value = "stopped"

        with pytest.raises(StageFailure):
            await executor.run(900, ["true"])
        pct.exec.assert_not_awaited()

    async def test_revalidates_between_attempts(self, executor, pct, lifecycle):
        pct.exec.side_effect = [CommandResult(1), CommandResult(0)]
        lifecycle.get_status.side_effect = ["running", "stopped", "running"]

        await executor.run(900, ["true"])

        lifecycle.start.assert_awaited_once_with(900)
