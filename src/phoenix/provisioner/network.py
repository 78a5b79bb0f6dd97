"""Network block resolution and validation."""

import logging
import re
from typing import Any, Dict, Optional, Union

from phoenix.errors import SpecValidationError
from phoenix.models.config import NetworkDefaults
from phoenix.models.container import ContainerSpec
from phoenix.models.network import LegacyNetwork, NetworkConfig, ResolvedNetwork, StructuredNetwork


logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
IPV4_PATTERN = re.compile(r"^([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})$")
CIDR_PATTERN = re.compile(r"^([0-9]{1,3}(?:\.[0-9]{1,3}){3})/([0-9]{1,2})$")
MAC_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")


def is_ipv4(value: str) -> bool:
    """Plain dotted-quad with every octet in 0-255."""
    match = IPV4_PATTERN.match(value)
    return bool(match) and all(int(octet) <= 255 for octet in match.groups())


def is_ipv4_cidr(value: str) -> bool:
    """Dotted-quad followed by ``/prefix`` with prefix 0-32."""
    match = CIDR_PATTERN.match(value)
    return bool(match) and is_ipv4(match.group(1)) and int(match.group(2)) <= 32


def is_unicast_mac(value: str) -> bool:
    """Six colon-separated hex octets, multicast bit of the first octet clear."""
    if not MAC_PATTERN.match(value):
        return False
    return int(value.split(":")[0], 16) & 1 == 0


class NetworkConfigResolver:
    """Normalizes a container's network block into a validated NIC descriptor."""

    def __init__(self, defaults: Optional[NetworkDefaults] = None):
        self.defaults = defaults or NetworkDefaults()

    def parse(self, raw: Union[Dict[str, Any], str, None]) -> NetworkConfig:
        """Classify the raw block as structured or legacy."""
        if isinstance(raw, dict):
            return StructuredNetwork(
                nic_name=_text(raw.get("name")),
                bridge=_text(raw.get("bridge")),
                cidr=_text(raw.get("ip")),
                gateway=_text(raw.get("gw")),
                nameserver=_text(raw.get("dns")),
            )
        if isinstance(raw, str) and raw.strip():
            return LegacyNetwork(raw=raw.strip())
        raise SpecValidationError("network_config", "missing or not an object/string")

    def resolve(
        self,
        raw: Union[Dict[str, Any], str, None],
        static_ip: Optional[str] = None,
        mac_address: Optional[str] = None,
    ) -> ResolvedNetwork:
        """Resolve and validate a network block.

        Raises SpecValidationError naming the offending field.
        """
        network = self.parse(raw)

        if isinstance(network, LegacyNetwork):
            logger.warning(f"Legacy string network_config detected: {network.raw!r}")
            parts = [part.strip() for part in network.raw.split(",")]
            nic_name = self.defaults.default_nic
            bridge = self.defaults.default_bridge
            cidr = parts[0] if len(parts) > 0 else None
            gateway = parts[1] if len(parts) > 1 else None
            nameserver = parts[2] if len(parts) > 2 and parts[2] else None
            source = "legacy"
        else:
            nic_name = network.nic_name
            bridge = network.bridge
            cidr = network.cidr
            gateway = network.gateway
            nameserver = network.nameserver
            source = "structured"

        if not nic_name or not NAME_PATTERN.match(nic_name):
            raise SpecValidationError(
                "network_config.name", f"invalid or missing NIC name {nic_name!r}, must be alphanumeric"
            )
        if not bridge or not NAME_PATTERN.match(bridge):
            raise SpecValidationError(
                "network_config.bridge", f"invalid or missing bridge {bridge!r}, must be alphanumeric"
            )
        if not cidr or not is_ipv4_cidr(cidr):
            raise SpecValidationError(
                "network_config.ip", f"invalid or missing IP {cidr!r}, expected x.x.x.x/yy"
            )
        if not gateway or not is_ipv4(gateway):
            raise SpecValidationError(
                "network_config.gw", f"invalid or missing gateway {gateway!r}, expected x.x.x.x"
            )

        nameserver = self._resolve_nameserver(nameserver)

        if static_ip:
            if not is_ipv4_cidr(static_ip):
                raise SpecValidationError(
                    "static_ip", f"invalid static IP {static_ip!r}, expected x.x.x.x/yy"
                )
            logger.info(f"Using static_ip {static_ip} instead of {cidr}")
            cidr = static_ip

        if mac_address:
            if not MAC_PATTERN.match(mac_address):
                raise SpecValidationError(
                    "mac_address", f"invalid MAC address {mac_address!r}, expected xx:xx:xx:xx:xx:xx"
                )
            if not is_unicast_mac(mac_address):
                raise SpecValidationError(
                    "mac_address", f"MAC address {mac_address} is not unicast"
                )

        resolved = ResolvedNetwork(
            nic_name=nic_name,
            bridge=bridge,
            cidr=cidr,
            gateway=gateway,
            nameserver=nameserver,
            mac_address=mac_address or None,
            source=source,
        )
        logger.debug(f"Resolved net0: {resolved.descriptor}")
        return resolved

    def resolve_spec(self, spec: ContainerSpec) -> ResolvedNetwork:
        """Resolve the network block of a container spec."""
        return self.resolve(spec.network_config, spec.static_ip, spec.mac_address)

    def _resolve_nameserver(self, nameserver: Optional[str]) -> str:
        if not nameserver:
            return self.defaults.default_nameserver
        servers = [server.strip() for server in nameserver.split(";") if server.strip()]
        for server in servers:
            if not is_ipv4(server):
                raise SpecValidationError(
                    "network_config.dns", f"invalid nameserver {server!r}, expected x.x.x.x"
                )
        return " ".join(servers) if servers else self.defaults.default_nameserver


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
