"""
Phoenix Provisioner - GPU-ready LXC container provisioning.

Turns declarative per-container specifications into running, network-configured
containers with host-side GPU passthrough on a single Proxmox host.
"""

__version__ = "1.0.0"
__author__ = "Phoenix Development Team"

# Re-export key components for easier access
from phoenix.models.config import PhoenixConfig
from phoenix.models.container import ContainerSpec
from phoenix.models.passthrough import DevicePassthroughPlan
from phoenix.models.retry import RetryPolicy

__all__ = [
    "PhoenixConfig",
    "ContainerSpec",
    "DevicePassthroughPlan",
    "RetryPolicy",
]
