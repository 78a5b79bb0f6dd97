"""Configuration models."""

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from phoenix.models.retry import RetryPolicy


class ProvisionerConfig(BaseModel):
    """Provisioner runtime configuration."""
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = None
    stabilization_seconds: float = Field(default=10, ge=0)
    max_parallel: int = Field(default=1, ge=1)
    stage_timeouts: Dict[str, float] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("stage_timeouts")
    @classmethod
    def validate_stage_timeouts(cls, v):
        """Timeouts are seconds, 0 disables."""
        for stage, seconds in v.items():
            if seconds < 0:
                raise ValueError(f"Negative timeout for stage {stage}")
        return v


class HostConfig(BaseModel):
    """Host paths and command limits."""
    lxc_config_dir: str = Field(default="/etc/pve/lxc")
    dev_root: str = Field(default="/dev")
    containers_file: str = Field(default="/usr/local/etc/phoenix_lxc_configs.json")
    command_timeout: int = Field(default=120, ge=1)
    create_timeout: int = Field(default=600, ge=1)


class RetryConfig(BaseModel):
    """Named retry policies used across the pipeline."""
    create: RetryPolicy = Field(default_factory=lambda: RetryPolicy(max_attempts=3, delay_seconds=10))
    start: RetryPolicy = Field(default_factory=lambda: RetryPolicy(max_attempts=5, delay_seconds=5))
    status_poll: RetryPolicy = Field(default_factory=lambda: RetryPolicy(max_attempts=5, delay_seconds=5))
    ensure_start: RetryPolicy = Field(default_factory=lambda: RetryPolicy(max_attempts=3, delay_seconds=10))
    exec: RetryPolicy = Field(default_factory=lambda: RetryPolicy(max_attempts=3, delay_seconds=10))
    status_query: RetryPolicy = Field(default_factory=lambda: RetryPolicy(max_attempts=3, delay_seconds=5))


class NetworkDefaults(BaseModel):
    """Defaults applied while resolving network blocks."""
    default_nic: str = Field(default="eth0")
    default_bridge: str = Field(default="vmbr0")
    default_nameserver: str = Field(default="8.8.8.8")
    check_target: str = Field(default="8.8.8.8")
    check_timeout: int = Field(default=10, ge=1)
    fallback_dns: str = Field(default="8.8.8.8")


class PassthroughConfig(BaseModel):
    """GPU passthrough settings."""
    swap_mb: int = Field(default=512, gt=0)


class PhoenixConfig(BaseModel):
    """Main configuration model."""
    provisioner: ProvisionerConfig = Field(default_factory=ProvisionerConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    network: NetworkDefaults = Field(default_factory=NetworkDefaults)
    passthrough: PassthroughConfig = Field(default_factory=PassthroughConfig)

    model_config = ConfigDict(extra="ignore")
