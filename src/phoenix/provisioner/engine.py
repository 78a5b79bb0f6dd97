"""Provisioning pipeline orchestration."""

import asyncio
import logging
import subprocess
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from phoenix.errors import ConfigError, ProvisioningError, SpecValidationError, StageFailure, TransientExecError
from phoenix.models.container import ContainerSpec
from phoenix.models.passthrough import DevicePassthroughPlan
from phoenix.models.state import ContainerState, ProvisionResult, Stage
from phoenix.providers import ProviderRegistry
from phoenix.providers.container import ContainerProvider
from phoenix.providers.passthrough import PassthroughProvider
from phoenix.provisioner.config import ConfigStore
from phoenix.provisioner.executor import RemoteExecutor
from phoenix.provisioner.scripts import (
    codename_script,
    dns_override_script,
    init_system_script,
    network_check_script,
)


logger = logging.getLogger(__name__)


class StagePolicy(Enum):
    """What a stage failure does to the rest of the pipeline."""
    ABORT = "abort"
    WARN = "warn"


STAGE_POLICIES: Dict[Stage, StagePolicy] = {
    Stage.VALIDATE: StagePolicy.ABORT,
    Stage.CREATE: StagePolicy.ABORT,
    Stage.START: StagePolicy.ABORT,
    Stage.NETWORK: StagePolicy.WARN,
    Stage.PASSTHROUGH: StagePolicy.WARN,
    Stage.BASELINE: StagePolicy.WARN,
}


class ProvisioningOrchestrator:
    """Runs the per-container pipeline and reports a ProvisionResult."""

    def __init__(
        self,
        config_store: ConfigStore,
        provider_registry: ProviderRegistry,
        executor: RemoteExecutor,
    ):
        """Initialize orchestrator."""
        self.config_store = config_store
        self.provider_registry = provider_registry
        self.executor = executor

    @property
    def config(self):
        return self.config_store.config

    @property
    def lifecycle(self) -> ContainerProvider:
        return self.provider_registry.get_provider("container")

    @property
    def passthrough(self) -> PassthroughProvider:
        return self.provider_registry.get_provider("passthrough")

    async def provision(self, container_id: int) -> ProvisionResult:
        """Provision one container id.

        Abort-policy stages end the pipeline on failure; warn-policy stages
        record a warning and let it continue.
        """
        result = ProvisionResult(container_id=container_id)
        start_time = datetime.now()
        logger.info(f"Provisioning container {container_id}")

        ok, spec = await self._run_stage(result, Stage.VALIDATE, lambda: self._validate(container_id))
        if not ok:
            return result

        ok, created = await self._run_stage(result, Stage.CREATE, lambda: self.lifecycle.present(spec))
        if not ok:
            return result
        result.created = created
        result.advance(ContainerState.CREATED)

        ok, _ = await self._run_stage(result, Stage.START, lambda: self.lifecycle.ensure_running(container_id))
        if not ok:
            return result
        result.advance(ContainerState.STARTED)

        ok, _ = await self._run_stage(result, Stage.NETWORK, lambda: self._verify_network(result))
        if ok:
            result.advance(ContainerState.NETWORK_VERIFIED)

        ok, plan = await self._run_stage(
            result, Stage.PASSTHROUGH,
            lambda: self.passthrough.apply(container_id, spec.gpu_assignment),
        )
        if ok:
            if plan is not None:
                for warning in plan.warnings:
                    result.warn(warning)
            result.advance(ContainerState.PASSTHROUGH_CONFIGURED)

        await self._run_stage(result, Stage.BASELINE, lambda: self._check_baseline(result))

        result.advance(ContainerState.PROVISIONED)
        duration = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Container {container_id} provisioned in {duration:.2f}s "
            f"with {len(result.warnings)} warnings"
        )
        return result

    async def _run_stage(
        self,
        result: ProvisionResult,
        stage: Stage,
        factory: Callable[[], Awaitable[Any]],
    ) -> Tuple[bool, Any]:
        """Run one stage under its timeout and apply the stage policy."""
        timeout = self._stage_timeout(stage)
        logger.debug(f"Container {result.container_id}: stage {stage.value}")
        try:
            if timeout:
                value = await asyncio.wait_for(factory(), timeout=timeout)
            else:
                value = await factory()
            return True, value
        except asyncio.TimeoutError:
            reason = f"timed out after {timeout:g} seconds"
        except TransientExecError as e:
            reason = str(e)
            if e.diagnostics:
                reason = f"{reason}\n{e.diagnostics}"
        except ProvisioningError as e:
            reason = str(e)
        except (OSError, subprocess.SubprocessError) as e:
            reason = f"{type(e).__name__}: {e}"

        if STAGE_POLICIES[stage] is StagePolicy.WARN:
            message = f"Stage {stage.value} failed for container {result.container_id}: {reason}"
            logger.warning(message)
            result.warn(message)
            return False, None

        logger.error(f"Stage {stage.value} failed for container {result.container_id}: {reason}")
        result.fail(stage, reason)
        return False, None

    def _stage_timeout(self, stage: Stage) -> Optional[float]:
        if self.config is None:
            return None
        return self.config.provisioner.stage_timeouts.get(stage.value) or None

    async def _validate(self, container_id: int) -> ContainerSpec:
        spec = self.config_store.get_container_spec(container_id)
        await self.lifecycle.validate_spec(spec)
        await self.passthrough.validate_spec(spec)
        return spec

    async def _verify_network(self, result: ProvisionResult) -> None:
        """Ping check; on failure override DNS and check once more."""
        network = self.config.network
        check = network_check_script(network.check_target, network.check_timeout)
        try:
            await self.executor.run(result.container_id, check)
            logger.info(f"Network connectivity verified for container {result.container_id}")
            return
        except TransientExecError as e:
            message = f"Network check failed for container {result.container_id}, overriding DNS: {e}"
            logger.warning(message)
            result.warn(message)

        await self.executor.run(result.container_id, dns_override_script(network.fallback_dns))
        await self.executor.run(result.container_id, check)
        logger.info(f"Network connectivity verified for container {result.container_id} after DNS override")

    async def _check_baseline(self, result: ProvisionResult) -> None:
        """Warn unless PID 1 is systemd; log the distribution codename."""
        output = await self.executor.run(result.container_id, init_system_script())
        init_system = output.stdout.strip()
        if init_system != "systemd":
            raise StageFailure(
                Stage.BASELINE.value,
                f"init system is {init_system or 'unknown'!r}, expected systemd",
            )

        codename = await self.executor.run(result.container_id, codename_script())
        logger.info(f"Container {result.container_id} runs {codename.stdout.strip() or 'unknown'}")

    async def provision_many(self, container_ids: Iterable[int]) -> Dict[int, ProvisionResult]:
        """Provision several ids, concurrently up to ``max_parallel``.

        Duplicate ids are collapsed. One id failing never affects another.
        """
        ids = list(dict.fromkeys(container_ids))
        max_parallel = self.config.provisioner.max_parallel if self.config else 1
        semaphore = asyncio.Semaphore(max_parallel)

        async def guarded(container_id: int) -> ProvisionResult:
            async with semaphore:
                return await self.provision(container_id)

        outcomes = await asyncio.gather(*(guarded(cid) for cid in ids), return_exceptions=True)

        results: Dict[int, ProvisionResult] = {}
        for container_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(f"Provisioning container {container_id} crashed: {outcome}", exc_info=outcome)
                outcome_result = ProvisionResult(container_id=container_id)
                outcome_result.fail(None, f"{type(outcome).__name__}: {outcome}")
                results[container_id] = outcome_result
            else:
                results[container_id] = outcome
        return results

    async def provision_all(self) -> Dict[int, ProvisionResult]:
        """Provision every configured id in ascending order."""
        ids = self.config_store.container_ids
        if not ids:
            logger.warning("No containers configured")
        return await self.provision_many(ids)

    async def get_container_status(self, container_id: int) -> Dict[str, Any]:
        """Detailed status for one configured id."""
        try:
            spec = self.config_store.get_container_spec(container_id)
        except SpecValidationError as e:
            return {"id": container_id, "valid": False, "error": str(e)}

        state = await self.lifecycle.get_status(container_id)
        return {
            "id": container_id,
            "valid": True,
            "name": spec.name,
            "exists": state != "absent",
            "running": state == "running",
            "status": state,
            "gpu_assignment": ",".join(str(i) for i in spec.gpu_indices) or "none",
        }

    async def get_all_container_statuses(self) -> Dict[int, Dict[str, Any]]:
        """Get status for all configured containers."""
        statuses = {}
        for container_id in self.config_store.container_ids:
            statuses[container_id] = await self.get_container_status(container_id)
        return statuses

    async def plan_passthrough(self, container_id: int) -> Optional[DevicePassthroughPlan]:
        """Passthrough block that provisioning would write, without writing."""
        spec = self.config_store.get_container_spec(container_id)
        return await self.passthrough.preview(spec)

    async def destroy_container(self, container_id: int) -> bool:
        """Stop and destroy one container. Returns False if it did not exist."""
        if container_id not in self.config_store.container_ids:
            raise ConfigError(f"No configuration found for container ID {container_id}")
        return await self.lifecycle.destroy(container_id)

    def summarize(self, results: Dict[int, ProvisionResult]) -> List[int]:
        """Log a summary; returns the failed ids."""
        failed = [cid for cid, result in results.items() if not result.success]
        logger.info(
            f"Provisioning finished: {len(results) - len(failed)} succeeded, {len(failed)} failed"
        )
        for cid in failed:
            result = results[cid]
            stage = result.failed_stage.value if result.failed_stage else "unknown"
            logger.error(f"Container {cid} failed at stage {stage}: {result.reason}")
        return failed
