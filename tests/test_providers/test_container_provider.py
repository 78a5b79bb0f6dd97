"""Tests for the container lifecycle provider."""

import subprocess

import pytest
import pytest_asyncio

from phoenix.errors import SpecValidationError, StageFailure, TransientExecError
from phoenix.models.container import validate_container_entry
from phoenix.providers.base import ProviderStatus
from phoenix.providers.registry import ProviderRegistry
from phoenix.utils.retry import RetryEngine


@pytest_asyncio.fixture
async def container_provider(pct, no_sleep, phoenix_config):
    """Container provider wired to the mocked pct client."""
    registry = ProviderRegistry(pct=pct, retry_engine=RetryEngine(sleep=no_sleep))
    await registry.initialize(phoenix_config)
    return registry.get_provider("container")


@pytest.fixture
def spec(container_entry):
    return validate_container_entry(900, container_entry)


@pytest.mark.asyncio
class TestContainerProvider:
    """Test container lifecycle."""

    async def test_ensure_running_on_running_container(self, container_provider, pct):
        """An already running container needs no start call."""
        started = await container_provider.ensure_running(900)

        assert started is False
        pct.start.assert_not_awaited()

    async def test_ensure_running_starts_stopped_container(self, container_provider, pct):
        pct.status.side_effect = ["stopped", "running"]

        started = await container_provider.ensure_running(900)

        assert started is True
        pct.start.assert_awaited_once_with(900)

    async def test_ensure_running_on_absent_container(self, container_provider, pct):
        pct.status.return_value = "absent"

        with pytest.raises(StageFailure) as exc_info:
            await container_provider.ensure_running(900)
        assert exc_info.value.stage == "start"
        pct.start.assert_not_awaited()

    async def test_create_issues_pct_create_then_start(self, container_provider, pct, spec):
        await container_provider.create(spec)

        pct.create.assert_awaited_once()
        args, kwargs = pct.create.call_args
        assert args == (900, spec.template)
        assert kwargs["hostname"] == "gpu-worker"
        assert kwargs["net0"] == "name=eth0,bridge=vmbr0,ip=10.0.0.90/24,gw=10.0.0.1"
        assert kwargs["nameserver"] == "8.8.8.8"
        assert kwargs["features"] == "nesting=1"
        pct.start.assert_awaited_once_with(900)

    async def test_create_validates_before_any_command(self, container_provider, pct, container_entry):
        container_entry["network_config"] = {"name": "eth0!", "bridge": "vmbr0", "ip": "10.0.0.9/24", "gw": "10.0.0.1"}
        spec = validate_container_entry(900, container_entry)

        with pytest.raises(SpecValidationError):
            await container_provider.create(spec)
        pct.create.assert_not_awaited()

    async def test_create_retries_then_gives_up(self, container_provider, pct, spec, no_sleep):
        error = subprocess.CalledProcessError(255, ["pct", "create"])
        error.stdout, error.stderr = "", "storage 'local-lvm' does not exist"
        pct.create.side_effect = error

        with pytest.raises(TransientExecError) as exc_info:
            await container_provider.create(spec)

        assert pct.create.await_count == 3
        assert no_sleep.await_count == 2
        assert "does not exist" in exc_info.value.stderr
        pct.start.assert_not_awaited()

    async def test_never_running_is_stage_failure(self, container_provider, pct, spec, no_sleep):
        pct.status.return_value = "stopped"

        with pytest.raises(StageFailure) as exc_info:
            await container_provider.create(spec)

        assert pct.status.await_count == 5
        assert "last status: stopped" in exc_info.value.reason

    async def test_present_skips_existing(self, container_provider, pct, spec):
        created = await container_provider.present(spec)

        assert created is False
        pct.create.assert_not_awaited()

    async def test_transient_status_failure_is_retried(self, container_provider, pct, no_sleep):
        """A failed status query is retried instead of read as absent."""
        pct.status.side_effect = [
            subprocess.CalledProcessError(255, ["pct", "status", "900"], stderr="got timeout"),
            "running",
        ]

        started = await container_provider.ensure_running(900)

        assert started is False
        assert pct.status.await_count == 2
        pct.start.assert_not_awaited()
        no_sleep.assert_awaited_once_with(5)

    async def test_status_failure_exhausts_retries(self, container_provider, pct):
        pct.status.side_effect = subprocess.CalledProcessError(255, ["pct", "status", "900"], stderr="got timeout")

        with pytest.raises(TransientExecError) as exc_info:
            await container_provider.get_status(900)
        assert exc_info.value.attempts == 3
        assert pct.status.await_count == 3

    async def test_transient_exists_failure_does_not_create(self, container_provider, pct, spec):
        """An existing container whose first lookup fails is not recreated."""
        pct.exists.side_effect = [
            subprocess.CalledProcessError(255, ["pct", "config", "900"], stderr="Connection refused"),
            True,
        ]

        created = await container_provider.present(spec)

        assert created is False
        assert pct.exists.await_count == 2
        pct.create.assert_not_awaited()

    async def test_status(self, container_provider, pct, spec):
        assert await container_provider.status(spec) == ProviderStatus.PRESENT
        pct.exists.return_value = False
        assert await container_provider.status(spec) == ProviderStatus.ABSENT

    async def test_destroy_stops_first(self, container_provider, pct):
        destroyed = await container_provider.destroy(900)

        assert destroyed is True
        pct.stop.assert_awaited_once_with(900)
        pct.destroy.assert_awaited_once_with(900)

    async def test_destroy_absent_is_noop(self, container_provider, pct):
        pct.exists.return_value = False

        assert await container_provider.destroy(900) is False
        pct.destroy.assert_not_awaited()
