"""Provisioner wiring and non-interactive entry point."""

import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from phoenix.models.state import ProvisionResult
from phoenix.providers import ProviderRegistry
from phoenix.provisioner.config import ConfigStore
from phoenix.provisioner.engine import ProvisioningOrchestrator
from phoenix.provisioner.executor import RemoteExecutor
from phoenix.provisioner.network import NetworkConfigResolver
from phoenix.utils.logging import setup_logging
from phoenix.utils.pct import PctClient
from phoenix.utils.retry import RetryEngine


logger = logging.getLogger(__name__)


class Provisioner:
    """Builds the pipeline components from configuration."""

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        containers_file: Optional[Path] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        pct: Optional[PctClient] = None,
    ):
        """Initialize the provisioner."""
        self.config_dir = Path(config_dir) if config_dir else Path("./configs")
        self.containers_file = containers_file
        self.sleep = sleep
        self.pct = pct
        self.config_store: Optional[ConfigStore] = None
        self.registry: Optional[ProviderRegistry] = None
        self.executor: Optional[RemoteExecutor] = None
        self.orchestrator: Optional[ProvisioningOrchestrator] = None

    async def initialize(self, configure_logging: bool = True):
        """Load configuration and build the pipeline."""
        if self.orchestrator is not None:
            return

        self.config_store = ConfigStore(self.config_dir, self.containers_file)
        await self.config_store.load()

        config = self.config_store.config
        if configure_logging:
            setup_logging(config.provisioner.log_level, config.provisioner.log_file)

        pct = self.pct or PctClient(
            command_timeout=config.host.command_timeout,
            create_timeout=config.host.create_timeout,
        )
        retry_engine = RetryEngine(sleep=self.sleep)
        resolver = NetworkConfigResolver(config.network)

        self.registry = ProviderRegistry(pct=pct, retry_engine=retry_engine, resolver=resolver)
        await self.registry.initialize(config)

        self.executor = RemoteExecutor(
            pct=pct,
            lifecycle=self.registry.get_provider("container"),
            retry_engine=retry_engine,
            retry=config.retry,
            stabilization_seconds=config.provisioner.stabilization_seconds,
        )
        self.orchestrator = ProvisioningOrchestrator(
            config_store=self.config_store,
            provider_registry=self.registry,
            executor=self.executor,
        )
        logger.info("Provisioner initialized")

    async def provision(self, container_ids: Optional[Iterable[int]] = None) -> Dict[int, ProvisionResult]:
        """Provision the given ids, or every configured id when None."""
        await self.initialize()
        if container_ids is None:
            return await self.orchestrator.provision_all()
        return await self.orchestrator.provision_many(container_ids)


async def run_provisioner() -> int:
    """Provision every configured container; returns the exit code."""
    config_dir = os.environ.get("PHOENIX_CONFIG_DIR")
    containers_file = os.environ.get("PHOENIX_CONTAINERS_FILE")

    provisioner = Provisioner(
        config_dir=Path(config_dir) if config_dir else None,
        containers_file=Path(containers_file) if containers_file else None,
    )

    # Cancel the pipeline on SIGTERM/SIGINT
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, task.cancel)

    try:
        results = await provisioner.provision()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    failed = provisioner.orchestrator.summarize(results)
    return 1 if failed else 0
