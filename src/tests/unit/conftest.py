"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from dockpanel.config import LifecycleConfig, NetworkConfig, RegistryConfig
from dockpanel.core.interfaces import ContainerRuntime
from dockpanel.core.models import Container, PortMapping
from dockpanel.core.registry import ContainerRegistry


def make_container(
    container_id: str = "c1",
    name: str = "web",
    status: str = "Running",
    image: str = "alpine:3.21",
    ip: str = "10.10.0.2",
    ports: list[tuple[int, int]] | None = None,
    args: list[str] | None = None,
    project: str = "",
    **kwargs: Any,
) -> Container:
    """Build a Container with sensible defaults."""
    return Container(
        id=container_id,
        name=name,
        image=image,
        status=status,
        ip=ip,
        ports=[PortMapping(host_port=h, container_port=c) for h, c in (ports or [])],
        args=args if args is not None else ["sleep", "3600"],
        project=project,
        **kwargs,
    )


@pytest.fixture
def mock_runtime() -> AsyncMock:
    """Mock ContainerRuntime for testing."""
    runtime = AsyncMock(spec=ContainerRuntime)
    runtime.list_containers = AsyncMock(return_value=[])
    runtime.inspect = AsyncMock(return_value=None)
    runtime.list_images = AsyncMock(return_value=[])
    runtime.create = AsyncMock()
    runtime.start = AsyncMock()
    runtime.stop = AsyncMock()
    runtime.remove = AsyncMock()
    runtime.update = AsyncMock()
    return runtime


@pytest.fixture
def registry_config() -> RegistryConfig:
    return RegistryConfig(refresh_interval=0.01, refresh_timeout=1.0, default_project="default")


@pytest.fixture
def lifecycle_config() -> LifecycleConfig:
    return LifecycleConfig(operation_timeout=1.0, clone_suffix="-copy")


@pytest.fixture
def network_config() -> NetworkConfig:
    return NetworkConfig(bridge_prefix="10.10.0", host_prefix="127.0.0", default_address="127.0.0.1")


@pytest.fixture
def registry(mock_runtime: AsyncMock, registry_config: RegistryConfig) -> ContainerRegistry:
    return ContainerRegistry(mock_runtime, registry_config)


@pytest.fixture
def container_factory():
    """Factory fixture exposing make_container to test modules."""
    return make_container
