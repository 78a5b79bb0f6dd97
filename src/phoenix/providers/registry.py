"""Provider registry for managing resource providers."""

import logging
from typing import Dict, Optional, Type

from phoenix.providers.base import BaseProvider
from phoenix.providers.container import ContainerProvider
from phoenix.providers.passthrough import PassthroughProvider
from phoenix.provisioner.network import NetworkConfigResolver
from phoenix.utils.pct import PctClient
from phoenix.utils.retry import RetryEngine


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry for managing providers and the services they share."""

    def __init__(
        self,
        pct: Optional[PctClient] = None,
        retry_engine: Optional[RetryEngine] = None,
        resolver: Optional[NetworkConfigResolver] = None,
    ):
        """Initialize provider registry."""
        self.pct = pct or PctClient()
        self.retry_engine = retry_engine or RetryEngine()
        self.resolver = resolver or NetworkConfigResolver()
        self._providers: Dict[str, BaseProvider] = {}
        self._provider_classes: Dict[str, Type[BaseProvider]] = {
            "container": ContainerProvider,
            "passthrough": PassthroughProvider,
        }

    async def initialize(self, config):
        """Initialize all providers with two-pass injection."""
        # Phase 1: Instantiate all providers
        for name, provider_class in self._provider_classes.items():
            try:
                self._providers[name] = provider_class()
            except Exception as e:
                logger.error(f"Failed to instantiate provider {name}: {e}")
                raise

        # Phase 2: Initialize and inject registry
        for name, provider in self._providers.items():
            try:
                await provider.initialize(config, self)
                logger.debug(f"Initialized provider: {name}")
            except Exception as e:
                logger.error(f"Failed to initialize provider {name}: {e}")
                raise

    def get_provider(self, name: str) -> Optional[BaseProvider]:
        """Get a provider by name."""
        return self._providers.get(name)

    def list_providers(self) -> list[str]:
        """List available provider names."""
        return list(self._providers.keys())
