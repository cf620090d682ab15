"""Infrastructure layer."""

from dockpanel.infra.docker import (
    ContainerAPI,
    ContainerConfig,
    DockerClient,
    HostConfig,
    ImageAPI,
    close_docker,
    get_docker_client,
)

__all__ = [
    "ContainerAPI",
    "ContainerConfig",
    "DockerClient",
    "HostConfig",
    "ImageAPI",
    "close_docker",
    "get_docker_client",
]
