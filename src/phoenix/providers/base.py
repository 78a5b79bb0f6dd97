"""Base provider interface."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from phoenix.models.container import ContainerSpec


class ProviderStatus(Enum):
    """Provider resource status."""
    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"
    ERROR = "error"


class BaseProvider(ABC):
    """Base provider interface that all providers must implement."""

    @abstractmethod
    async def initialize(self, config: Any, registry: Any):
        """Initialize the provider with configuration and shared services."""
        pass

    @abstractmethod
    async def status(self, spec: ContainerSpec) -> ProviderStatus:
        """Check the current status of a resource."""
        pass

    @abstractmethod
    async def present(self, spec: ContainerSpec) -> Any:
        """Ensure the resource is present."""
        pass

    @abstractmethod
    async def absent(self, spec: ContainerSpec) -> None:
        """Ensure the resource is absent."""
        pass

    @abstractmethod
    async def validate_spec(self, spec: ContainerSpec) -> None:
        """Validate the specification, raising SpecValidationError on problems."""
        pass
