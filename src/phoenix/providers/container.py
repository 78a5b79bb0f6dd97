"""Container provider for managing Proxmox LXC containers through pct."""

import logging
from typing import Optional, TYPE_CHECKING

from phoenix.errors import StageFailure
from phoenix.models.config import RetryConfig
from phoenix.models.container import ContainerSpec
from phoenix.models.network import ResolvedNetwork
from phoenix.models.retry import RetryPolicy
from phoenix.models.state import Stage
from phoenix.providers.base import BaseProvider, ProviderStatus

if TYPE_CHECKING:
    from phoenix.providers.registry import ProviderRegistry
    from phoenix.provisioner.network import NetworkConfigResolver
    from phoenix.utils.pct import PctClient
    from phoenix.utils.retry import RetryEngine

logger = logging.getLogger(__name__)

RUNNING = "running"
STOPPED = "stopped"
ABSENT = "absent"


class ContainerProvider(BaseProvider):
    """Lifecycle manager for LXC containers: create, start, stop, destroy."""

    def __init__(self):
        """Initialize container provider."""
        self.pct: Optional["PctClient"] = None
        self.retry_engine: Optional["RetryEngine"] = None
        self.resolver: Optional["NetworkConfigResolver"] = None
        self.retry = RetryConfig()

    async def initialize(self, config, registry: "ProviderRegistry") -> None:
        """Initialize provider with configuration and registry."""
        self.pct = registry.pct
        self.retry_engine = registry.retry_engine
        self.resolver = registry.resolver
        self.retry = config.retry

    async def status(self, spec: ContainerSpec) -> ProviderStatus:
        """Check if container exists."""
        if await self.exists(spec.id):
            return ProviderStatus.PRESENT
        return ProviderStatus.ABSENT

    async def exists(self, container_id: int) -> bool:
        """Whether pct knows the container."""
        outcome = await self.retry_engine.execute(
            lambda: self.pct.exists(container_id),
            self.retry.status_query,
            f"Checking existence of container {container_id}",
        )
        return outcome.unwrap(f"Existence check for container {container_id}")

    async def get_status(self, container_id: int) -> str:
        """Current state string, ``absent`` if unknown to pct."""
        outcome = await self.retry_engine.execute(
            lambda: self.pct.status(container_id),
            self.retry.status_query,
            f"Querying status of container {container_id}",
        )
        return outcome.unwrap(f"Status query for container {container_id}")

    async def is_running(self, container_id: int) -> bool:
        """Check if container is running."""
        return await self.get_status(container_id) == RUNNING

    async def validate_spec(self, spec: ContainerSpec) -> ResolvedNetwork:
        """Validate everything pct create needs; returns the resolved NIC."""
        return self.resolver.resolve_spec(spec)

    async def present(self, spec: ContainerSpec) -> bool:
        """Create the container unless it exists. Returns True if created."""
        if await self.exists(spec.id):
            logger.info(f"Container {spec.id} already exists, skipping creation")
            return False

        await self.create(spec)
        return True

    async def create(self, spec: ContainerSpec) -> ResolvedNetwork:
        """Create the container, start it and wait until it runs.

        The spec is validated before any command is issued.
        """
        network = await self.validate_spec(spec)

        logger.info(f"Creating container {spec.id} ({spec.name}) from {spec.template}")
        outcome = await self.retry_engine.execute(
            lambda: self.pct.create(
                spec.id,
                spec.template,
                hostname=spec.name,
                memory=spec.memory_mb,
                cores=spec.cores,
                storage=spec.storage_pool,
                rootfs_size=spec.storage_size_gb,
                net0=network.descriptor,
                nameserver=network.nameserver,
                features=spec.features,
            ),
            self.retry.create,
            f"Creating container {spec.id}",
        )
        outcome.unwrap(f"Creation of container {spec.id}")
        logger.info(f"Container {spec.id} created")

        await self.start(spec.id, self.retry.start)
        await self.wait_until_running(spec.id)
        return network

    async def start(self, container_id: int, policy: Optional[RetryPolicy] = None) -> None:
        """Issue pct start under ``policy`` (the start policy by default)."""
        logger.info(f"Starting container {container_id}")
        outcome = await self.retry_engine.execute(
            lambda: self.pct.start(container_id),
            policy or self.retry.start,
            f"Starting container {container_id}",
        )
        outcome.unwrap(f"Start of container {container_id}")

    async def wait_until_running(self, container_id: int) -> None:
        """Poll status until running; StageFailure when the poll budget runs out."""
        last_state = {"value": "unknown"}

        async def check():
            state = await self.pct.status(container_id)
            last_state["value"] = state
            if state != RUNNING:
                raise StageFailure(Stage.START.value, f"container {container_id} is {state}")
            return state

        outcome = await self.retry_engine.execute(
            check,
            self.retry.status_poll,
            f"Waiting for container {container_id} to run",
        )
        if not outcome.success:
            raise StageFailure(
                Stage.START.value,
                f"Container {container_id} did not reach running after "
                f"{outcome.attempt_number} checks (last status: {last_state['value']})",
            )
        logger.info(f"Container {container_id} is running")

    async def ensure_running(self, container_id: int) -> bool:
        """Make sure the container runs. Returns True if it had to be started."""
        state = await self.get_status(container_id)
        if state == RUNNING:
            logger.info(f"Container {container_id} is already running")
            return False
        if state != STOPPED:
            raise StageFailure(
                Stage.START.value,
                f"Container {container_id} is in unexpected state: {state}",
            )

        await self.start(container_id, self.retry.ensure_start)
        await self.wait_until_running(container_id)
        return True

    async def stop(self, container_id: int) -> None:
        """Stop container if running."""
        if not await self.is_running(container_id):
            logger.debug(f"Container {container_id} already stopped")
            return

        logger.info(f"Stopping container {container_id}")
        outcome = await self.retry_engine.execute(
            lambda: self.pct.stop(container_id),
            self.retry.start,
            f"Stopping container {container_id}",
        )
        outcome.unwrap(f"Stop of container {container_id}")

    async def absent(self, spec: ContainerSpec) -> None:
        """Ensure container is absent."""
        await self.destroy(spec.id)

    async def destroy(self, container_id: int) -> bool:
        """Stop and destroy a container. Returns False if it did not exist."""
        if not await self.exists(container_id):
            logger.debug(f"Container {container_id} already absent")
            return False

        await self.stop(container_id)
        logger.info(f"Destroying container {container_id}")
        outcome = await self.retry_engine.execute(
            lambda: self.pct.destroy(container_id),
            self.retry.create,
            f"Destroying container {container_id}",
        )
        outcome.unwrap(f"Destruction of container {container_id}")
        return True
