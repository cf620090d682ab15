"""Container registry - in-memory view of the runtime grouped by project.

Algorithm (read-copy-update):
1. List containers from the runtime, bounded by refresh_timeout
2. Failure -> keep the published snapshot, mark it stale, raise UnavailableError
3. Success -> build a brand new snapshot off to the side, then publish it
   with a single reference assignment

Readers only ever dereference ``self._snapshot`` once per call, so they see
either the old snapshot or the new one, never a mix.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from dockpanel.core.errors import ContainerNotFoundError, UnavailableError
from dockpanel.core.models import Container, Project
from dockpanel.logging_schema import LogEvent
from dockpanel.metrics import (
    PANEL_CONTAINERS_TOTAL,
    PANEL_REFRESH_TOTAL,
    PANEL_REGISTRY_STALE,
)

if TYPE_CHECKING:
    from dockpanel.config import RegistryConfig
    from dockpanel.core.interfaces import ContainerRuntime

logger = logging.getLogger(__name__)


class RegistrySnapshot(BaseModel):
    """Immutable projects/containers view published by one refresh."""

    projects: tuple[Project, ...] = ()
    index: dict[str, Container] = Field(default_factory=dict)
    refreshed_at: datetime | None = None
    stale: bool = False

    model_config = {"frozen": True}

    @property
    def containers(self) -> list[Container]:
        return [c for p in self.projects for c in p.containers]


def group_projects(containers: Iterable[Container], default_project: str) -> tuple[Project, ...]:
    """Group containers by project name, keeping runtime order inside a project."""
    grouped: dict[str, list[Container]] = {}
    for container in containers:
        grouped.setdefault(container.project or default_project, []).append(container)
    return tuple(
        Project(name=name, containers=tuple(grouped[name])) for name in sorted(grouped)
    )


class ContainerRegistry:
    """Authoritative in-memory cache of runtime state."""

    def __init__(self, runtime: ContainerRuntime, config: RegistryConfig) -> None:
        self._runtime = runtime
        self._timeout_s = config.refresh_timeout
        self._default_project = config.default_project
        self._snapshot = RegistrySnapshot()
        self._started = 0
        self._published = 0

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def projects(self) -> tuple[Project, ...]:
        return self._snapshot.projects

    def find_container(self, container_id: str) -> Container:
        container = self._snapshot.index.get(container_id)
        if container is None:
            raise ContainerNotFoundError(f"Container {container_id} not found")
        return container

    async def refresh(self) -> tuple[Project, ...]:
        """Rebuild the snapshot from the runtime and publish it."""
        self._started += 1
        generation = self._started
        start = time.monotonic()

        try:
            containers = await asyncio.wait_for(
                self._runtime.list_containers(), timeout=self._timeout_s
            )
        except Exception as exc:
            # Data published by a newer refresh is not stale
            if generation > self._published:
                self._mark_stale()
            PANEL_REFRESH_TOTAL.labels(result="unavailable").inc()
            logger.warning(
                "Registry refresh failed, serving last-known state",
                extra={
                    "event": LogEvent.REGISTRY_STALE,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            raise UnavailableError(f"Container runtime unavailable: {type(exc).__name__}") from exc

        snapshot = RegistrySnapshot(
            projects=group_projects(containers, self._default_project),
            index={c.id: c for c in containers},
            refreshed_at=datetime.now(UTC),
        )

        # A slower refresh that started earlier must not overwrite a newer one
        if generation > self._published:
            self._snapshot = snapshot
            self._published = generation
            self._record(snapshot)

        logger.debug(
            "Registry refreshed",
            extra={
                "event": LogEvent.REGISTRY_REFRESHED,
                "containers": len(containers),
                "projects": len(snapshot.projects),
                "duration_ms": round((time.monotonic() - start) * 1000, 1),
            },
        )
        return self._snapshot.projects

    def _mark_stale(self) -> None:
        current = self._snapshot
        if not current.stale:
            self._snapshot = current.model_copy(update={"stale": True})
        PANEL_REGISTRY_STALE.set(1)

    def _record(self, snapshot: RegistrySnapshot) -> None:
        running = sum(1 for c in snapshot.index.values() if c.running)
        PANEL_CONTAINERS_TOTAL.labels(state="running").set(running)
        PANEL_CONTAINERS_TOTAL.labels(state="stopped").set(len(snapshot.index) - running)
        PANEL_REFRESH_TOTAL.labels(result="success").inc()
        PANEL_REGISTRY_STALE.set(0)
