"""Docker runtime adapter.

Identifiers: containers created through the panel carry a stable id in the
``dockpanel.id`` label, which survives the recreate that applying an update
requires. Containers created elsewhere are addressed by their Docker id.

Updates: Docker cannot change the command or port bindings of an existing
container, so an update is applied by recreating it under the same label.
A stopped container is recreated immediately; a running one keeps running
and the new configuration is held until its next start. The replacement is
created before the old container is removed, so a failed recreate leaves
the old container (and any held configuration) in place.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from dockpanel.config import DockerConfig, get_config
from dockpanel.core.errors import ContainerNotFoundError, InvalidSpecError
from dockpanel.core.interfaces import ContainerRuntime
from dockpanel.core.models import Container, RunSpec
from dockpanel.infra import ContainerAPI, ContainerConfig, HostConfig, ImageAPI
from dockpanel.logging_schema import LogEvent
from dockpanel.runtimes.docker.normalize import normalize

logger = logging.getLogger(__name__)


class DockerRuntime(ContainerRuntime):
    """ContainerRuntime backed by the Docker Engine API."""

    def __init__(
        self,
        config: DockerConfig | None = None,
        containers: ContainerAPI | None = None,
        images: ImageAPI | None = None,
    ) -> None:
        self._config = config or get_config().docker
        self._containers = containers or ContainerAPI()
        self._images = images or ImageAPI()
        # container id -> configuration to apply on next start
        self._pending: dict[str, RunSpec] = {}

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_containers(self) -> list[Container]:
        # Oldest first: while a recreate is in flight the original wins
        summaries = sorted(await self._containers.list(), key=lambda s: s.get("Created", 0))
        details = await asyncio.gather(
            *[self._containers.inspect(s["Id"]) for s in summaries]
        )
        containers: dict[str, Container] = {}
        # A container removed between list and inspect is simply skipped
        for data in details:
            if data is None:
                continue
            container = self._to_container(data)
            containers.setdefault(container.id, container)
        return list(containers.values())

    async def inspect(self, container_id: str) -> Container | None:
        data = await self._lookup(container_id)
        if data is None:
            return None
        return self._to_container(data)

    async def list_images(self) -> list[str]:
        images = await self._images.list()
        refs = {
            tag
            for image in images
            for tag in image.get("RepoTags") or []
            if tag and tag != "<none>:<none>"
        }
        return sorted(refs)

    async def logs(self, container_id: str) -> AsyncIterator[bytes]:
        data = await self._require(container_id)
        async for chunk in self._containers.stream_logs(data["Id"]):
            yield chunk

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create(self, container_id: str, spec: RunSpec) -> None:
        await self._images.ensure(spec.image)
        await self._containers.create(self._container_config(container_id, spec))

    async def start(self, container_id: str) -> None:
        data = await self._require(container_id)
        ref = data["Id"]
        pending = self._pending.pop(container_id, None)
        if pending is not None:
            try:
                ref = await self._recreate(data, container_id, pending)
            except BaseException:
                # Keep it for the next start unless a newer update replaced it
                self._pending.setdefault(container_id, pending)
                raise
        await self._containers.start(ref)

    async def stop(self, container_id: str) -> None:
        data = await self._require(container_id)
        await self._containers.stop(data["Id"], timeout=self._config.stop_timeout)

    async def remove(self, container_id: str) -> None:
        data = await self._require(container_id)
        await self._containers.remove(data["Id"], force=False)
        self._pending.pop(container_id, None)

    async def update(self, container_id: str, spec: RunSpec) -> None:
        data = await self._require(container_id)
        if (data.get("State") or {}).get("Running"):
            await self._check_name(data, spec.name)
            self._pending[container_id] = spec
            logger.info(
                "Stored configuration for next start",
                extra={"event": LogEvent.CONTAINER_UPDATED, "container_id": container_id},
            )
            return
        await self._recreate(data, container_id, spec)
        self._pending.pop(container_id, None)

    # =========================================================================
    # Internals
    # =========================================================================

    def _to_container(self, data: dict) -> Container:
        container = normalize(data, self._config.id_label, self._config.project_label)
        pending = self._pending.get(container.id)
        if pending is None:
            return container
        # Show the configuration that the next start will use
        return container.model_copy(
            update={
                "image": pending.image,
                "name": pending.name,
                "args": list(pending.args),
                "ports": list(pending.ports),
            }
        )

    async def _lookup(self, container_id: str) -> dict | None:
        matches = await self._containers.list(
            filters={"label": [f"{self._config.id_label}={container_id}"]}
        )
        if matches:
            oldest = min(matches, key=lambda s: s.get("Created", 0))
            return await self._containers.inspect(oldest["Id"])
        data = await self._containers.inspect(container_id)
        # A Docker id that belongs to a panel container must be addressed by its label
        if data is not None and ((data.get("Config") or {}).get("Labels") or {}).get(self._config.id_label):
            return None
        return data

    async def _require(self, container_id: str) -> dict:
        data = await self._lookup(container_id)
        if data is None:
            raise ContainerNotFoundError(f"Container {container_id} not found")
        return data

    def _container_config(
        self,
        container_id: str,
        spec: RunSpec,
        labels: dict[str, str] | None = None,
        network_mode: str = "bridge",
    ) -> ContainerConfig:
        return ContainerConfig(
            image=spec.image,
            name=spec.name,
            cmd=list(spec.args),
            labels={**(labels or {}), self._config.id_label: container_id},
            host_config=HostConfig(
                network_mode=network_mode,
                port_bindings={
                    f"{p.container_port}/tcp": str(p.host_port) for p in spec.ports
                },
            ),
        )

    async def _check_name(self, data: dict, name: str) -> None:
        """Reject a name held by a different container before touching anything."""
        if not name:
            return
        holder = await self._containers.inspect(name)
        if holder is not None and holder["Id"] != data["Id"]:
            raise InvalidSpecError(f"Container name {name} is already in use")

    async def _recreate(self, data: dict, container_id: str, spec: RunSpec) -> str:
        """Replace a stopped container with one built from ``spec``.

        Order: create the replacement unnamed, remove the old container,
        then give the replacement its name. Until the old container is gone
        a failure removes the replacement again and leaves the old one as it
        was. Labels other than the id (e.g. compose project) and the network
        mode are carried over.
        """
        await self._check_name(data, spec.name)
        labels = dict((data.get("Config") or {}).get("Labels") or {})
        network_mode = (data.get("HostConfig") or {}).get("NetworkMode") or "bridge"
        config = self._container_config(
            container_id, spec.model_copy(update={"name": ""}), labels, network_mode
        )

        await self._images.ensure(spec.image)
        docker_id = await self._containers.create(config)
        try:
            await self._containers.remove(data["Id"], force=False)
        except BaseException:
            await self._discard_replacement(container_id, docker_id)
            raise

        # The old container is gone; from here the replacement is the container
        if spec.name:
            await self._containers.rename(docker_id, spec.name)
        logger.info(
            "Recreated container with new configuration",
            extra={
                "event": LogEvent.CONTAINER_RECREATED,
                "container_id": container_id,
                "image": spec.image,
            },
        )
        return docker_id

    async def _discard_replacement(self, container_id: str, docker_id: str) -> None:
        try:
            await self._containers.remove(docker_id, force=True)
        except Exception:
            logger.warning(
                "Could not remove replacement container %s",
                docker_id,
                extra={"event": LogEvent.CONTAINER_RECREATED, "container_id": container_id},
                exc_info=True,
            )

    async def close(self) -> None:
        self._pending.clear()


__all__ = ["DockerRuntime"]
