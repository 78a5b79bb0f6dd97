"""Network configuration models."""

from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class StructuredNetwork(BaseModel):
    """Network block given as an object ``{name, bridge, ip, gw}``."""
    kind: Literal["structured"] = "structured"
    nic_name: Optional[str] = None
    bridge: Optional[str] = None
    cidr: Optional[str] = None
    gateway: Optional[str] = None
    nameserver: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class LegacyNetwork(BaseModel):
    """Network block given as the legacy ``"ip,gw,dns"`` string."""
    kind: Literal["legacy"] = "legacy"
    raw: str

    model_config = ConfigDict(frozen=True)


NetworkConfig = Union[StructuredNetwork, LegacyNetwork]


class ResolvedNetwork(BaseModel):
    """Validated NIC settings for one container."""
    nic_name: str
    bridge: str
    cidr: str
    gateway: str
    nameserver: str
    mac_address: Optional[str] = None
    source: Literal["structured", "legacy"] = Field(default="structured")

    model_config = ConfigDict(frozen=True)

    @property
    def descriptor(self) -> str:
        """NIC descriptor passed as ``--net0``."""
        net0 = f"name={self.nic_name},bridge={self.bridge},ip={self.cidr},gw={self.gateway}"
        if self.mac_address:
            net0 = f"{net0},hwaddr={self.mac_address}"
        return net0
