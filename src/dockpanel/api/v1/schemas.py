"""API v1 schemas.

Consolidated request/response models for all API endpoints.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from dockpanel.core.command import parse_command, parse_port_mapping
from dockpanel.core.models import Container, PortMapping, RunSpec
from dockpanel.core.ports import PortTranslator
from dockpanel.core.result import OperationResult


# =============================================================================
# Common
# =============================================================================


class OperationResponse(BaseModel):
    """Common operation response."""

    status: str
    container_id: str
    message: str = ""

    @classmethod
    def from_result(cls, result: OperationResult) -> "OperationResponse":
        return cls(
            status=result.status.value,
            container_id=result.container_id,
            message=result.message,
        )


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


# =============================================================================
# Containers / Projects
# =============================================================================


class ContainerResponse(BaseModel):
    """Container as shown in the panel."""

    id: str
    name: str
    image: str
    status: str
    running: bool
    ip: str
    host_address: str
    access_urls: list[str]
    ports: list[PortMapping]
    args: list[str]
    project: str
    created: datetime | None = None
    config: dict[str, Any] | None = None

    @classmethod
    def build(
        cls,
        container: Container,
        translator: PortTranslator,
        include_config: bool = False,
    ) -> "ContainerResponse":
        return cls(
            id=container.id,
            name=container.name,
            image=container.image,
            status=container.status,
            running=container.running,
            ip=container.ip,
            host_address=translator.host_address(container),
            access_urls=translator.access_urls(container),
            ports=list(container.ports),
            args=list(container.args),
            project=container.project,
            created=container.created,
            config=container.config if include_config else None,
        )


class ContainerListResponse(BaseModel):
    """Flat container list response."""

    containers: list[ContainerResponse]
    stale: bool


class ProjectResponse(BaseModel):
    """Project with its containers."""

    name: str
    containers: list[ContainerResponse]


class ProjectListResponse(BaseModel):
    """Project list response.

    ``stale`` is set when the last refresh failed and this is last-known state.
    """

    projects: list[ProjectResponse]
    stale: bool
    refreshed_at: datetime | None = None


class RunRequest(BaseModel):
    """Run/update request.

    Accepts the structured form (``args``, ``ports``) or the raw form fields
    (``command`` string, ``port`` as "host:container"); structured wins.
    """

    image: str = ""
    name: str = ""
    args: list[str] | None = None
    command: str | None = None
    ports: list[PortMapping] | None = None
    port: str | None = None

    def to_spec(self) -> RunSpec:
        args = self.args if self.args is not None else parse_command(self.command or "")
        ports = self.ports if self.ports is not None else parse_port_mapping(self.port or "")
        return RunSpec(image=self.image, name=self.name, args=args, ports=ports)


class RunResponse(BaseModel):
    """Run result response."""

    id: str


# =============================================================================
# Images / Network
# =============================================================================


class ImageListResponse(BaseModel):
    """Local image references."""

    images: list[str]


class ForwardsResponse(BaseModel):
    """Host listener -> bridge target table."""

    forwards: dict[str, str]
