"""GPU device passthrough provider.

Reconciles the passthrough block of ``<lxc_config_dir>/<id>.conf``: every
previously written passthrough line is stripped from the main section, then
the current plan is appended in a fixed order. Running it twice yields the
same file.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, TYPE_CHECKING

from phoenix.errors import FatalError, SpecValidationError
from phoenix.models.container import ContainerSpec
from phoenix.models.passthrough import CapabilityFlags, DeviceMapping, DevicePassthroughPlan
from phoenix.providers.base import BaseProvider, ProviderStatus
from phoenix.utils.devices import DeviceInventory
from phoenix.utils.lxcconf import LxcConfigFile, backup

if TYPE_CHECKING:
    from phoenix.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Always mapped, relative to the device root
DISPLAY_DEVICES = (
    ("dri/card0", "gid=44"),
    ("dri/renderD128", "gid=104"),
)

# Mapped when present, in this order
CONTROL_DEVICES = (
    "nvidia-caps/nvidia-cap1",
    "nvidia-caps/nvidia-cap2",
    "nvidiactl",
    "nvidia-uvm-tools",
    "nvidia-uvm",
)
MANDATORY_CONTROL_DEVICE = "nvidiactl"

PASSTHROUGH_LINE_PATTERNS = tuple(re.compile(pattern) for pattern in (
    r"^lxc\.cgroup2\.devices\.allow:",
    r"^lxc\.cap\.drop:",
    r"^lxc\.mount\.entry: /dev/nvidia",
    r"^dev[0-9]*:",
    r"^swap: ",
    r"^lxc\.autodev:",
    r"^lxc\.mount\.auto:",
    r"^lxc\.aa_profile:",
    r"^lxc\.apparmor\.profile:",
))


def is_passthrough_line(line: str) -> bool:
    """Whether ``line`` belongs to a written passthrough block."""
    return any(pattern.match(line) for pattern in PASSTHROUGH_LINE_PATTERNS)


def gpu_device(index: int) -> str:
    return f"nvidia{index}"


class PassthroughProvider(BaseProvider):
    """Computes and writes the host-side GPU passthrough configuration."""

    def __init__(self):
        """Initialize passthrough provider."""
        self.lxc_config_dir = Path("/etc/pve/lxc")
        self.inventory = DeviceInventory()
        self.swap_mb = 512

    async def initialize(self, config, registry: "ProviderRegistry") -> None:
        """Initialize provider with configuration."""
        self.lxc_config_dir = Path(config.host.lxc_config_dir)
        self.inventory = DeviceInventory(Path(config.host.dev_root))
        self.swap_mb = config.passthrough.swap_mb

    def config_path(self, container_id: int) -> Path:
        """Host config file of a container."""
        return self.lxc_config_dir / f"{container_id}.conf"

    async def validate_spec(self, spec: ContainerSpec) -> None:
        """GPU indices must be non-negative integers."""
        for index in spec.gpu_indices:
            if not isinstance(index, int) or index < 0:
                raise SpecValidationError(
                    "gpu_assignment", f"GPU index {index!r} is not a non-negative integer"
                )

    async def build_plan(self, container_id: int, gpu_indices: Iterable[int]) -> DevicePassthroughPlan:
        """Compute the passthrough block without touching any file.

        Raises FatalError when the mandatory control device is missing.
        """
        indices = sorted(set(gpu_indices))
        warnings: List[str] = []
        mappings: List[DeviceMapping] = []

        def add(relative: str, options: Optional[str] = None):
            mappings.append(DeviceMapping(
                host_path=self.inventory.host_path(relative),
                slot=len(mappings),
                options=options,
            ))

        for relative, options in DISPLAY_DEVICES:
            add(relative, options)

        for index in indices:
            if not isinstance(index, int) or index < 0:
                raise FatalError(f"GPU index {index!r} for container {container_id} is not a non-negative integer")
            relative = gpu_device(index)
            if await self.inventory.exists(relative):
                add(relative)
            else:
                message = f"GPU device {self.inventory.host_path(relative)} not found on host, skipping index {index}"
                logger.warning(message)
                warnings.append(message)

        found = await self.inventory.scan(CONTROL_DEVICES)
        if not found[MANDATORY_CONTROL_DEVICE]:
            raise FatalError(
                f"Required device {self.inventory.host_path(MANDATORY_CONTROL_DEVICE)} not found on host",
                path=self.inventory.host_path(MANDATORY_CONTROL_DEVICE),
            )
        for relative, present in found.items():
            if present:
                add(relative)
            else:
                message = f"Optional device {self.inventory.host_path(relative)} not found, skipping"
                logger.warning(message)
                warnings.append(message)

        return DevicePassthroughPlan(
            container_id=container_id,
            gpu_indices=indices,
            mappings=mappings,
            flags=CapabilityFlags(swap_mb=self.swap_mb),
            warnings=warnings,
        )

    async def preview(self, spec: ContainerSpec) -> Optional[DevicePassthroughPlan]:
        """Plan for a spec, None when it has no GPU assignment."""
        if not spec.gpu_indices:
            return None
        return await self.build_plan(spec.id, spec.gpu_indices)

    async def apply(self, container_id: int, gpu_assignment: Optional[Iterable[int]]) -> Optional[DevicePassthroughPlan]:
        """Write the passthrough block for ``container_id``.

        Returns None when no GPUs are assigned. The plan is computed in full
        before anything is written, so a FatalError leaves the file untouched.
        """
        if not gpu_assignment:
            logger.info(f"No GPU assignment for container {container_id}, skipping passthrough")
            return None

        path = self.config_path(container_id)
        if not await asyncio.to_thread(path.exists):
            raise FatalError(f"Container config file not found: {path}", path=str(path))

        plan = await self.build_plan(container_id, gpu_assignment)
        warnings = list(plan.warnings)

        conf = await self._load(path)
        original = conf.render()
        removed = conf.remove(is_passthrough_line)
        conf.extend(plan.lines())
        logger.debug(f"Replaced {removed} passthrough lines in {path}")

        if conf.render() == original:
            logger.info(f"Passthrough for container {container_id} already up to date")
        else:
            try:
                await backup(path)
            except OSError as e:
                message = f"Failed to back up {path}: {e}"
                logger.warning(message)
                warnings.append(message)
            await self._save(conf, path)
            logger.info(
                f"Configured GPU passthrough for container {container_id} "
                f"(GPUs {','.join(str(i) for i in plan.gpu_indices)}, {len(plan.mappings)} devices)"
            )

        if warnings != plan.warnings:
            plan = plan.model_copy(update={"warnings": warnings})
        return plan

    async def status(self, spec: ContainerSpec) -> ProviderStatus:
        """PRESENT when the file carries exactly the planned block."""
        path = self.config_path(spec.id)
        if not await asyncio.to_thread(path.exists):
            return ProviderStatus.UNKNOWN

        conf = await self._load(path)
        current = [line for line in conf.main if is_passthrough_line(line)]
        if not spec.gpu_indices:
            return ProviderStatus.PRESENT if current else ProviderStatus.ABSENT

        try:
            plan = await self.build_plan(spec.id, spec.gpu_indices)
        except FatalError as e:
            logger.warning(f"Cannot plan passthrough for container {spec.id}: {e}")
            return ProviderStatus.ERROR
        return ProviderStatus.PRESENT if current == plan.lines() else ProviderStatus.ABSENT

    async def present(self, spec: ContainerSpec) -> Optional[DevicePassthroughPlan]:
        """Ensure the planned passthrough block is written."""
        return await self.apply(spec.id, spec.gpu_assignment)

    async def absent(self, spec: ContainerSpec) -> None:
        """Ensure container is absent."""
        await self.remove(spec.id)

    async def remove(self, container_id: int) -> int:
        """Strip every passthrough line; returns the number removed."""
        path = self.config_path(container_id)
        if not await asyncio.to_thread(path.exists):
            raise FatalError(f"Container config file not found: {path}", path=str(path))

        conf = await self._load(path)
        removed = conf.remove(is_passthrough_line)
        if removed:
            try:
                await backup(path)
            except OSError as e:
                logger.warning(f"Failed to back up {path}: {e}")
            await self._save(conf, path)
        logger.info(f"Removed {removed} passthrough lines from {path}")
        return removed

    async def _load(self, path: Path) -> LxcConfigFile:
        try:
            return await LxcConfigFile.load(path)
        except OSError as e:
            raise FatalError(f"Cannot read container config {path}: {e}", path=str(path)) from e

    async def _save(self, conf: LxcConfigFile, path: Path) -> None:
        try:
            await conf.save(path)
        except OSError as e:
            raise FatalError(f"Cannot write container config {path}: {e}", path=str(path)) from e
