"""Container runtime adapters."""

from dockpanel.runtimes.docker import DockerRuntime

__all__ = ["DockerRuntime"]
