"""Device passthrough plan models."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DeviceMapping(BaseModel):
    """A host device node exposed in the container as ``dev<slot>``."""
    host_path: str
    slot: int = Field(..., ge=0)
    options: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def render(self) -> str:
        """Render as a host config line."""
        value = self.host_path
        if self.options:
            value = f"{value},{self.options}"
        return f"dev{self.slot}: {value}"


class CapabilityFlags(BaseModel):
    """Container capability settings written after the device mappings."""
    cgroup_allow_all: bool = True
    apparmor_unconfined: bool = True
    autodev_enabled: bool = True
    swap_mb: int = Field(default=512, gt=0)

    model_config = ConfigDict(frozen=True)

    def render(self) -> List[str]:
        """Render in fixed order."""
        lines = []
        if self.cgroup_allow_all:
            lines.append("lxc.cgroup2.devices.allow: a")
        lines.append("lxc.cap.drop:")
        if self.apparmor_unconfined:
            lines.append("lxc.apparmor.profile: unconfined")
        lines.append(f"swap: {self.swap_mb}")
        if self.autodev_enabled:
            lines.append("lxc.autodev: 1")
        lines.append("lxc.mount.auto: sys:rw")
        return lines


class DevicePassthroughPlan(BaseModel):
    """Desired passthrough section of a container's host config."""
    container_id: int
    gpu_indices: List[int] = Field(default_factory=list)
    mappings: List[DeviceMapping] = Field(default_factory=list)
    flags: CapabilityFlags = Field(default_factory=CapabilityFlags)
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def lines(self) -> List[str]:
        """Host config lines in write order."""
        return [mapping.render() for mapping in self.mappings] + self.flags.render()

    def render(self) -> str:
        """Rendered block, one line per entry."""
        return "\n".join(self.lines()) + "\n"
