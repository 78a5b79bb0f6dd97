"""Provisioning state and result models."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class ContainerState(Enum):
    """Forward-only provisioning progress of one container."""
    ABSENT = "absent"
    CREATED = "created"
    STARTED = "started"
    NETWORK_VERIFIED = "network_verified"
    PASSTHROUGH_CONFIGURED = "passthrough_configured"
    PROVISIONED = "provisioned"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _STATE_ORDER.index(self)


_STATE_ORDER = list(ContainerState)


class Stage(Enum):
    """Pipeline stages, in execution order."""
    VALIDATE = "validate"
    CREATE = "create"
    START = "start"
    NETWORK = "network"
    PASSTHROUGH = "passthrough"
    BASELINE = "baseline"


class ProvisionResult(BaseModel):
    """Outcome of provisioning one container id."""
    container_id: int
    state: ContainerState = ContainerState.ABSENT
    failed_stage: Optional[Stage] = None
    reason: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    created: bool = False

    @property
    def success(self) -> bool:
        return self.state == ContainerState.PROVISIONED

    def advance(self, state: ContainerState) -> None:
        """Move forward to ``state``; never moves backwards."""
        if self.state == ContainerState.FAILED:
            raise ValueError(f"Container {self.container_id} already failed")
        if state.rank < self.state.rank:
            raise ValueError(f"Cannot move from {self.state.value} back to {state.value}")
        self.state = state

    def fail(self, stage: Optional[Stage], reason: str) -> None:
        """Record a stage failure."""
        self.state = ContainerState.FAILED
        self.failed_stage = stage
        self.reason = reason

    def warn(self, message: str) -> None:
        self.warnings.append(message)
