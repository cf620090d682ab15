"""Docker inspect payload -> canonical Container.

All knowledge of Docker's field names lives here.
"""

import logging
import re
from datetime import datetime
from typing import Any

from dockpanel.core.models import RUNNING, Container, PortMapping

logger = logging.getLogger(__name__)

# Docker reports nanoseconds; datetime only takes microseconds
_FRACTION = re.compile(r"\.(\d{6})\d*")


def parse_created(value: str | None) -> datetime | None:
    if not value:
        return None
    text = _FRACTION.sub(r".\1", value).replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable created timestamp: %s", value)
        return None


def container_status(state: dict[str, Any]) -> str:
    """Map Docker's State block to a status string.

    Running (and not paused) is the only status callers interpret; the rest
    is passed through capitalized ("Exited", "Created", "Paused", ...).
    """
    if state.get("Paused"):
        return "Paused"
    if state.get("Running"):
        return RUNNING
    return str(state.get("Status") or "unknown").capitalize()


def container_ip(network_settings: dict[str, Any]) -> str:
    ip = network_settings.get("IPAddress") or ""
    if ip:
        return ip
    for network in (network_settings.get("Networks") or {}).values():
        if network and network.get("IPAddress"):
            return network["IPAddress"]
    return ""


def port_mappings(port_bindings: dict[str, Any] | None) -> list[PortMapping]:
    """Read configured bindings ({"80/tcp": [{"HostPort": "8080"}]}).

    Configured bindings are used rather than live ones so stopped
    containers still report their ports.
    """
    mappings: list[PortMapping] = []
    for port_proto, bindings in (port_bindings or {}).items():
        container_port = port_proto.split("/", 1)[0]
        for binding in bindings or []:
            host_port = (binding or {}).get("HostPort")
            if not host_port:
                continue
            try:
                mapping = PortMapping(host_port=int(host_port), container_port=int(container_port))
            except ValueError:
                continue
            if mapping not in mappings:
                mappings.append(mapping)
    return mappings


def normalize(data: dict[str, Any], id_label: str, project_label: str) -> Container:
    config = data.get("Config") or {}
    labels = config.get("Labels") or {}
    host_config = data.get("HostConfig") or {}

    return Container(
        id=labels.get(id_label) or data["Id"],
        name=(data.get("Name") or "").lstrip("/"),
        image=config.get("Image") or data.get("Image", ""),
        status=container_status(data.get("State") or {}),
        ip=container_ip(data.get("NetworkSettings") or {}),
        ports=port_mappings(host_config.get("PortBindings")),
        args=list(config.get("Cmd") or []),
        project=labels.get(project_label, ""),
        created=parse_created(data.get("Created")),
        config=data,
    )
