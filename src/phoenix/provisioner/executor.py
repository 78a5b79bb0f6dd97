"""Running commands inside containers."""

import logging
import subprocess
from typing import List, Optional, Union

from phoenix.errors import StageFailure
from phoenix.models.config import RetryConfig
from phoenix.provisioner.scripts import RemoteScript
from phoenix.providers.container import ContainerProvider, RUNNING
from phoenix.utils.pct import CommandResult, PctClient
from phoenix.utils.retry import RetryEngine


logger = logging.getLogger(__name__)

Command = Union[RemoteScript, List[str]]


class RemoteExecutor:
    """Runs commands in a container that is verified to be running.

    Before the first attempt and between retries the container's state is
    re-checked; a stopped container is started and given time to settle.
    """

    def __init__(
        self,
        pct: PctClient,
        lifecycle: ContainerProvider,
        retry_engine: RetryEngine,
        retry: Optional[RetryConfig] = None,
        stabilization_seconds: float = 10,
    ):
        self.pct = pct
        self.lifecycle = lifecycle
        self.retry_engine = retry_engine
        self.retry = retry or RetryConfig()
        self.stabilization_seconds = stabilization_seconds

    async def run(self, container_id: int, command: Command, timeout: Optional[int] = None) -> CommandResult:
        """Execute ``command`` under the exec retry policy.

        A nonzero exit status counts as a failed attempt. Raises
        TransientExecError with the captured output once retries run out.
        """
        if isinstance(command, RemoteScript):
            argv, label = command.argv, command.name
        else:
            argv, label = list(command), " ".join(command)

        await self.ensure_ready(container_id)

        async def attempt() -> CommandResult:
            result = await self.pct.exec(container_id, argv, timeout=timeout)
            if result.returncode != 0:
                error = subprocess.CalledProcessError(result.returncode, argv)
                error.stdout = result.stdout
                error.stderr = result.stderr
                raise error
            return result

        async def revalidate(attempt_number: int) -> None:
            await self.ensure_ready(container_id)

        outcome = await self.retry_engine.execute(
            attempt,
            self.retry.exec,
            f"Executing {label} in container {container_id}",
            between_attempts=revalidate,
        )
        result = outcome.unwrap(f"Command {label} in container {container_id}")
        logger.debug(f"{label} in container {container_id}: {result.stdout.strip()}")
        return result

    async def ensure_ready(self, container_id: int) -> None:
        """Start the container if needed and wait for it to stabilize."""
        state = await self.lifecycle.get_status(container_id)
        if state == RUNNING:
            return

        logger.info(f"Container {container_id} is {state}, starting before exec")
        await self.lifecycle.start(container_id)
        logger.info(f"Waiting {self.stabilization_seconds:g} seconds for container {container_id} to stabilize")
        await self.retry_engine.sleep(self.stabilization_seconds)

        state = await self.lifecycle.get_status(container_id)
        if state != RUNNING:
            raise StageFailure("exec", f"Container {container_id} is {state} after restart")
