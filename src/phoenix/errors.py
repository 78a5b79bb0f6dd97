"""Error taxonomy for the provisioning pipeline."""

from typing import Optional


class ProvisioningError(Exception):
    """Base class for provisioning errors."""
    pass


class ConfigError(ProvisioningError):
    """Configuration missing, unreadable or referencing an unknown id."""
    pass


class SpecValidationError(ProvisioningError):
    """A container specification field is missing or invalid.

    Never retried. ``field`` names the offending field.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class TransientExecError(ProvisioningError):
    """A CLI or in-container call kept failing after its retry policy."""

    def __init__(
        self,
        message: str,
        stdout: str = "",
        stderr: str = "",
        attempts: int = 0,
    ):
        self.stdout = stdout
        self.stderr = stderr
        self.attempts = attempts
        super().__init__(message)

    @property
    def diagnostics(self) -> str:
        """Captured output of the last failed attempt."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


class StageFailure(ProvisioningError):
    """A pipeline stage failed structurally (e.g. container never reached Running)."""

    def __init__(self, stage: str, reason: str):
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage}: {reason}")


class FatalError(ProvisioningError):
    """A hard precondition is violated; abort immediately without retry."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
