"""Container runtime interface.

This is the single interface the lifecycle coordinator and the registry
use to reach the underlying runtime (Docker, or anything else that can
create and run containers).

Design principles:
- Identifiers passed to ``create`` stay valid for the container's lifetime,
  including across update()
- Every method returns canonical models (dockpanel.core.models)
- Reads never mutate the runtime
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from dockpanel.core.models import Container, RunSpec


class ContainerRuntime(ABC):
    """Narrow command interface to a container runtime."""

    @abstractmethod
    async def list_containers(self) -> list[Container]:
        """List every container the runtime knows about."""
        ...

    @abstractmethod
    async def inspect(self, container_id: str) -> Container | None:
        """Return the container, or None if the runtime doesn't know it."""
        ...

    @abstractmethod
    async def list_images(self) -> list[str]:
        """List image references in the local image store."""
        ...

    @abstractmethod
    async def create(self, container_id: str, spec: RunSpec) -> None:
        """Create (but do not start) a container under the given identifier."""
        ...

    @abstractmethod
    async def start(self, container_id: str) -> None:
        """Start a container, applying any configuration stored by update()."""
        ...

    @abstractmethod
    async def stop(self, container_id: str) -> None:
        """Stop a running container."""
        ...

    @abstractmethod
    async def remove(self, container_id: str) -> None:
        """Remove a stopped container."""
        ...

    @abstractmethod
    async def update(self, container_id: str, spec: RunSpec) -> None:
        """Store new configuration without restarting the container."""
        ...

    @abstractmethod
    def logs(self, container_id: str) -> AsyncIterator[bytes]:
        """Stream raw log output."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        return None
