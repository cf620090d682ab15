"""Canonical container model.

Runtime adapters normalize whatever their upstream returns into these
models; nothing above the adapter branches on upstream field names.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

RUNNING = "Running"


class PortMapping(BaseModel):
    """Host port to container port mapping.

    Host port collisions are left for the runtime to reject.
    """

    host_port: int = Field(ge=1, le=65535)
    container_port: int = Field(ge=1, le=65535)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.host_port}:{self.container_port}"


class RunSpec(BaseModel):
    """Desired configuration for creating or updating a container."""

    image: str = ""
    name: str = ""
    args: list[str] = Field(default_factory=list)
    ports: list[PortMapping] = Field(default_factory=list)

    model_config = {"frozen": True}


class Container(BaseModel):
    """A container as last reported by the runtime.

    ``status`` is an opaque runtime string; only ``Running`` is interpreted.
    ``config`` is the raw runtime configuration, passed through untouched.
    """

    id: str
    name: str = ""
    image: str
    status: str
    ip: str = ""
    ports: list[PortMapping] = Field(default_factory=list)
    args: list[str] = Field(default_factory=list)
    project: str = ""
    created: datetime | None = None
    config: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def running(self) -> bool:
        return self.status == RUNNING

    @property
    def short_id(self) -> str:
        return self.id[:12]

    @property
    def spec(self) -> RunSpec:
        """Current configuration as a RunSpec."""
        return RunSpec(
            image=self.image,
            name=self.name,
            args=list(self.args),
            ports=list(self.ports),
        )


class Project(BaseModel):
    """Named grouping of containers (e.g. a compose project)."""

    name: str
    containers: tuple[Container, ...] = ()

    model_config = {"frozen": True}
