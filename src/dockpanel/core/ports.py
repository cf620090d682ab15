"""Address translation between the bridge network and host loopback.

Containers sit on an internal bridge (10.10.0.x by default) that the host
UI cannot reach directly. Each container is instead exposed on its own
loopback address that keeps the last octet (10.10.0.5 -> 127.0.0.5), so two
containers can publish the same host port without colliding.
"""

from collections.abc import Iterable

from dockpanel.config import NetworkConfig
from dockpanel.core.models import Container, Project

DEFAULT_HOST_PREFIX = "127.0.0"
DEFAULT_BRIDGE_PREFIX = "10.10.0"
DEFAULT_LOOPBACK = "127.0.0.1"


def _last_octet(address: str) -> str | None:
    parts = address.split(".")
    if len(parts) != 4:
        return None
    return parts[3]


def translate(
    internal_address: str,
    host_prefix: str = DEFAULT_HOST_PREFIX,
    default: str = DEFAULT_LOOPBACK,
) -> str:
    """Map a bridge address to its host-reachable loopback address.

    Never fails: anything that isn't four dot-separated components maps to
    ``default``.
    """
    octet = _last_octet(internal_address or "")
    if octet is None:
        return default
    return f"{host_prefix}.{octet}"


def reverse(host_address: str, bridge_prefix: str = DEFAULT_BRIDGE_PREFIX) -> str | None:
    """Map a host loopback address back to the bridge address."""
    octet = _last_octet(host_address or "")
    if octet is None:
        return None
    return f"{bridge_prefix}.{octet}"


class PortTranslator:
    """Translator bound to the configured address scheme."""

    def __init__(self, config: NetworkConfig) -> None:
        self._bridge_prefix = config.bridge_prefix
        self._host_prefix = config.host_prefix
        self._default = config.default_address

    def host_address(self, container: Container) -> str:
        return translate(container.ip, self._host_prefix, self._default)

    def bridge_address(self, host_address: str) -> str | None:
        return reverse(host_address, self._bridge_prefix)

    def access_urls(self, container: Container) -> list[str]:
        """HTTP URLs for each published port of a running container."""
        if not container.running:
            return []
        host = self.host_address(container)
        return [f"http://{host}:{p.host_port}" for p in container.ports]

    def forwarding_table(self, projects: Iterable[Project]) -> dict[str, str]:
        """Listener -> target pairs a host-side proxy has to maintain.

        Keys are ``hostip:hostport``, values ``bridgeip:containerport``.
        Stopped containers and containers without a bridge address are left
        out, so their listeners get torn down.
        """
        table: dict[str, str] = {}
        for project in projects:
            for container in project.containers:
                if not container.running or not container.ip:
                    continue
                host = self.host_address(container)
                for mapping in container.ports:
                    table[f"{host}:{mapping.host_port}"] = f"{container.ip}:{mapping.container_port}"
        return table
