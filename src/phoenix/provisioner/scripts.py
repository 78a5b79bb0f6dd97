"""Remote scripts executed inside containers.

Scripts are rendered once from Jinja2 templates and handed to the
RemoteExecutor, so their text can be checked without running anything.
"""

from dataclasses import dataclass
from typing import List

from phoenix.utils.templates import render_template


NETWORK_CHECK_TEMPLATE = (
    "set -e; timeout {{ timeout }}s ping -c 1 {{ target }} >/dev/null 2>&1 "
    "&& echo '[SUCCESS] Network ping successful' "
    "|| { echo '[ERROR] Network ping failed'; exit 1; }"
)

DNS_OVERRIDE_TEMPLATE = (
    "set -e; echo 'nameserver {{ server }}' > /etc/resolv.conf "
    "&& echo '[INFO] Temporary DNS set to {{ server }}'"
)

INIT_SYSTEM_TEMPLATE = "ps -p 1 -o comm="

CODENAME_TEMPLATE = "lsb_release -cs 2>/dev/null || echo 'unknown'"


@dataclass(frozen=True)
class RemoteScript:
    """A rendered shell snippet with a short name for logs."""
    name: str
    body: str

    @property
    def argv(self) -> List[str]:
        """Command vector for ``pct exec``."""
        return ["bash", "-c", self.body]

    def __str__(self) -> str:
        return self.name


def network_check_script(target: str = "8.8.8.8", timeout: int = 10) -> RemoteScript:
    """Single ping to ``target`` bounded by ``timeout`` seconds."""
    return RemoteScript(
        name=f"network-check({target})",
        body=render_template(NETWORK_CHECK_TEMPLATE, target=target, timeout=timeout),
    )


def dns_override_script(server: str = "8.8.8.8") -> RemoteScript:
    """Overwrite /etc/resolv.conf with a single nameserver."""
    return RemoteScript(
        name=f"dns-override({server})",
        body=render_template(DNS_OVERRIDE_TEMPLATE, server=server),
    )


def init_system_script() -> RemoteScript:
    """Print the command name of PID 1."""
    return RemoteScript(name="init-system", body=render_template(INIT_SYSTEM_TEMPLATE))


def codename_script() -> RemoteScript:
    """Print the distribution codename or 'unknown'."""
    return RemoteScript(name="codename", body=render_template(CODENAME_TEMPLATE))
