"""Fixtures for Docker runtime unit tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from dockpanel.config import DockerConfig
from dockpanel.infra import ContainerAPI, ImageAPI


def inspect_payload(
    docker_id: str = "d1",
    panel_id: str | None = "c1",
    name: str = "/web",
    image: str = "alpine:3.21",
    running: bool = True,
    cmd: list[str] | None = None,
    bindings: dict[str, str] | None = None,
    labels: dict[str, str] | None = None,
    ip: str = "10.10.0.2",
) -> dict[str, Any]:
    """Build a Docker inspect payload."""
    all_labels = dict(labels or {})
    if panel_id:
        all_labels["dockpanel.id"] = panel_id
    return {
        "Id": docker_id,
        "Name": name,
        "Created": "2025-03-01T10:20:30.123456789Z",
        "State": {"Running": running, "Paused": False, "Status": "running" if running else "exited"},
        "Config": {
            "Image": image,
            "Cmd": cmd if cmd is not None else ["sleep", "3600"],
            "Labels": all_labels,
        },
        "HostConfig": {
            "NetworkMode": "bridge",
            "PortBindings": {
                port: [{"HostIp": "", "HostPort": host}] for port, host in (bindings or {}).items()
            },
        },
        "NetworkSettings": {"IPAddress": ip, "Networks": {}},
    }


@pytest.fixture
def payload_factory():
    """Factory fixture exposing inspect_payload to test modules."""
    return inspect_payload


@pytest.fixture
def docker_config() -> DockerConfig:
    return DockerConfig(stop_timeout=7)


@pytest.fixture
def mock_container_api() -> AsyncMock:
    """Mock ContainerAPI for testing."""
    api = AsyncMock(spec=ContainerAPI)
    api.list = AsyncMock(return_value=[])
    api.inspect = AsyncMock(return_value=None)
    api.create = AsyncMock(return_value="new-docker-id")
    api.start = AsyncMock()
    api.stop = AsyncMock()
    api.remove = AsyncMock()
    api.rename = AsyncMock()
    api.stream_logs = MagicMock()
    return api


@pytest.fixture
def mock_image_api() -> AsyncMock:
    """Mock ImageAPI for testing."""
    api = AsyncMock(spec=ImageAPI)
    api.list = AsyncMock(return_value=[])
    api.ensure = AsyncMock()
    return api
