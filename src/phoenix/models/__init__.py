"""Pydantic models for configuration and validation."""

from phoenix.models.config import (
    PhoenixConfig,
    ProvisionerConfig,
    HostConfig,
    RetryConfig,
    NetworkDefaults,
    PassthroughConfig,
)
from phoenix.models.container import ContainerSpec, parse_gpu_assignment, validate_container_entry
from phoenix.models.network import StructuredNetwork, LegacyNetwork, NetworkConfig, ResolvedNetwork
from phoenix.models.passthrough import DeviceMapping, CapabilityFlags, DevicePassthroughPlan
from phoenix.models.retry import RetryPolicy, ExecutionAttempt, AttemptOutcome
from phoenix.models.state import ContainerState, Stage, ProvisionResult

__all__ = [
    "PhoenixConfig",
    "ProvisionerConfig",
    "HostConfig",
    "RetryConfig",
    "NetworkDefaults",
    "PassthroughConfig",
    "ContainerSpec",
    "parse_gpu_assignment",
    "validate_container_entry",
    "StructuredNetwork",
    "LegacyNetwork",
    "NetworkConfig",
    "ResolvedNetwork",
    "DeviceMapping",
    "CapabilityFlags",
    "DevicePassthroughPlan",
    "RetryPolicy",
    "ExecutionAttempt",
    "AttemptOutcome",
    "ContainerState",
    "Stage",
    "ProvisionResult",
]
