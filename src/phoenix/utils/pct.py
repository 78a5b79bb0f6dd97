"""Subprocess helpers and the Proxmox container CLI (pct) wrapper."""

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional


logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result from running a command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""


async def run_command(
    cmd: List[str],
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[int] = None,
    **kwargs
) -> CommandResult:
    """Run a command asynchronously."""
    logger.debug(f"Running command: {' '.join(cmd)}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE if capture_output else None,
        stderr=asyncio.subprocess.PIPE if capture_output else None,
        **kwargs
    )

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise subprocess.TimeoutExpired(cmd, timeout)
    except asyncio.CancelledError:
        process.kill()
        await process.wait()
        raise

    result = CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace") if stdout else "",
        stderr=stderr.decode(errors="replace") if stderr else "",
    )

    if check and process.returncode != 0:
        raise _command_error(cmd, result)

    return result


def parse_status(output: str) -> str:
    """Extract the state from ``pct status`` output (``status: running``)."""
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("status:"):
            return line.split(":", 1)[1].strip() or "unknown"
    return "unknown"


def is_missing_container(result: CommandResult) -> bool:
    """Whether a failed pct call reports an unknown container id."""
    output = f"{result.stdout}\n{result.stderr}".lower()
    return "does not exist" in output


def _command_error(cmd: List[str], result: CommandResult) -> subprocess.CalledProcessError:
    error = subprocess.CalledProcessError(result.returncode, cmd)
    error.stdout = result.stdout
    error.stderr = result.stderr
    return error


class PctClient:
    """Thin async wrapper around the ``pct`` container lifecycle CLI."""

    def __init__(self, binary: str = "pct", command_timeout: int = 120, create_timeout: int = 600):
        self.binary = binary
        self.command_timeout = command_timeout
        self.create_timeout = create_timeout

    async def create(
        self,
        container_id: int,
        template: str,
        hostname: str,
        memory: int,
        cores: int,
        storage: str,
        rootfs_size: int,
        net0: str,
        nameserver: str,
        features: Optional[str] = None,
    ) -> CommandResult:
        """Create a container from a template."""
        cmd = [
            self.binary, "create", str(container_id), template,
            "--hostname", hostname,
            "--memory", str(memory),
            "--cores", str(cores),
            "--storage", storage,
            "--rootfs", str(rootfs_size),
            "--net0", net0,
            "--nameserver", nameserver,
        ]
        if features:
            cmd += ["--features", features]
        return await run_command(cmd, timeout=self.create_timeout)

    async def start(self, container_id: int) -> CommandResult:
        """Start a container."""
        return await run_command(
            [self.binary, "start", str(container_id)],
            timeout=self.command_timeout,
        )

    async def stop(self, container_id: int) -> CommandResult:
        """Stop a container."""
        return await run_command(
            [self.binary, "stop", str(container_id)],
            timeout=self.command_timeout,
        )

    async def destroy(self, container_id: int, purge: bool = True) -> CommandResult:
        """Destroy a container."""
        cmd = [self.binary, "destroy", str(container_id)]
        if purge:
            cmd.append("--purge")
        return await run_command(cmd, timeout=self.command_timeout)

    async def status(self, container_id: int) -> str:
        """Return the container state (``running``, ``stopped``, ...).

        Returns ``absent`` when the CLI does not know the id; any other
        failure raises CalledProcessError so callers can retry it.
        """
        cmd = [self.binary, "status", str(container_id)]
        result = await run_command(cmd, check=False, timeout=self.command_timeout)
        if result.returncode != 0:
            if is_missing_container(result):
                return "absent"
            raise _command_error(cmd, result)
        return parse_status(result.stdout)

    async def exists(self, container_id: int) -> bool:
        """Check whether the container has a configuration.

        Raises CalledProcessError for failures other than an unknown id.
        """
        cmd = [self.binary, "config", str(container_id)]
        result = await run_command(cmd, check=False, timeout=self.command_timeout)
        if result.returncode == 0:
            return True
        if is_missing_container(result):
            return False
        raise _command_error(cmd, result)

    async def exec(
        self,
        container_id: int,
        command: List[str],
        timeout: Optional[int] = None,
    ) -> CommandResult:
        """Run a command inside the container without raising on failure."""
        return await run_command(
            [self.binary, "exec", str(container_id), "--", *command],
            check=False,
            timeout=timeout or self.command_timeout,
        )
