"""Host device inventory."""

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable


logger = logging.getLogger(__name__)

HOST_DEV = PurePosixPath("/dev")


class DeviceInventory:
    """Read-only view of device nodes present on the host.

    Lookups resolve below ``dev_root`` while reported paths always live
    under ``/dev``, as written into container configs.
    """

    def __init__(self, dev_root: Path = Path("/dev")):
        self.dev_root = Path(dev_root)

    def host_path(self, relative: str) -> str:
        """Path of a device node as seen by the host, e.g. ``/dev/nvidia0``."""
        return str(HOST_DEV / relative)

    async def exists(self, relative: str) -> bool:
        """Check if a device node exists, ``relative`` to the device root."""
        return await asyncio.to_thread((self.dev_root / relative).exists)

    async def scan(self, candidates: Iterable[str]) -> Dict[str, bool]:
        """Check a set of device nodes, preserving candidate order."""
        found: Dict[str, bool] = {}
        for relative in candidates:
            found[relative] = await self.exists(relative)
        logger.debug(f"Device scan under {self.dev_root}: {found}")
        return found
