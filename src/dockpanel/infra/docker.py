"""Docker Engine API client.

Provides async Docker API access for containers and images.
Supports both Unix socket and TCP connections.
"""

import json
import logging
from collections.abc import AsyncIterator

import httpx
from pydantic import BaseModel

from dockpanel.config import DockerConfig, get_config

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================


class HostConfig(BaseModel):
    """Docker HostConfig for container creation."""

    network_mode: str = "bridge"
    # "80/tcp" -> host port
    port_bindings: dict[str, str] = {}

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API format."""
        return {
            "NetworkMode": self.network_mode,
            "PortBindings": {
                port: [{"HostPort": host_port}] for port, host_port in self.port_bindings.items()
            },
        }


class ContainerConfig(BaseModel):
    """Docker container configuration for creation."""

    image: str
    name: str = ""
    cmd: list[str] = []
    labels: dict[str, str] = {}
    host_config: HostConfig = HostConfig()

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API JSON format."""
        result: dict = {
            "Image": self.image,
            "Labels": self.labels,
            "ExposedPorts": {port: {} for port in self.host_config.port_bindings},
            "HostConfig": self.host_config.to_api(),
        }
        # Omitting Cmd keeps the image's default command
        if self.cmd:
            result["Cmd"] = self.cmd
        return result


# =============================================================================
# Docker Client (Singleton)
# =============================================================================


class DockerClient:
    """Async Docker API client."""

    def __init__(self, config: DockerConfig | None = None) -> None:
        self._config = config or get_config().docker
        self._host = self._config.host
        self._client: httpx.AsyncClient | None = None

    def _create_client(self) -> httpx.AsyncClient:
        """Create a new HTTP client."""
        timeout = self._config.api_timeout
        if self._host.startswith("unix://"):
            socket_path = self._host.replace("unix://", "")
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
            return httpx.AsyncClient(
                transport=transport,
                base_url="http://localhost",
                timeout=timeout,
            )
        base_url = self._host
        if base_url.startswith("tcp://"):
            base_url = base_url.replace("tcp://", "http://")
        return httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def get(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = self._create_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


_docker_client: DockerClient | None = None


def get_docker_client() -> DockerClient:
    """Get the global Docker client singleton."""
    global _docker_client
    if _docker_client is None:
        _docker_client = DockerClient()
    return _docker_client


async def close_docker() -> None:
    """Close the global Docker client."""
    global _docker_client
    if _docker_client:
        await _docker_client.close()
        _docker_client = None


# =============================================================================
# Container API
# =============================================================================


class ContainerAPI:
    """Docker Container API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def list(self, filters: dict | None = None) -> list[dict]:
        """List containers (including stopped ones)."""
        client = await self._docker.get()
        params: dict = {"all": "true"}
        if filters:
            params["filters"] = json.dumps(filters)
        resp = await client.get("/containers/json", params=params)
        resp.raise_for_status()
        return resp.json()

    async def inspect(self, ref: str) -> dict | None:
        """Inspect a container by Docker id or name."""
        client = await self._docker.get()
        resp = await client.get(f"/containers/{ref}/json")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    async def create(self, config: ContainerConfig) -> str:
        """Create a container and return its Docker id."""
        client = await self._docker.get()
        params = {"name": config.name} if config.name else {}
        resp = await client.post("/containers/create", params=params, json=config.to_api())
        resp.raise_for_status()
        docker_id = resp.json()["Id"]
        logger.info("Created container: %s (%s)", config.name or "<unnamed>", docker_id[:12])
        return docker_id

    async def start(self, ref: str) -> None:
        """Start a container."""
        client = await self._docker.get()
        resp = await client.post(f"/containers/{ref}/start")
        if resp.status_code not in (204, 304):
            resp.raise_for_status()
        logger.info("Started container: %s", ref)

    async def stop(self, ref: str, timeout: int = 10) -> None:
        """Stop a container, giving it ``timeout`` seconds before SIGKILL."""
        client = await self._docker.get()
        # The daemon holds the request open for up to `timeout` seconds
        http_timeout = client.timeout.read + timeout if client.timeout.read else None
        resp = await client.post(
            f"/containers/{ref}/stop",
            params={"t": str(timeout)},
            timeout=http_timeout,
        )
        if resp.status_code not in (204, 304):
            resp.raise_for_status()
        logger.info("Stopped container: %s", ref)

    async def rename(self, ref: str, name: str) -> None:
        """Rename a container."""
        client = await self._docker.get()
        resp = await client.post(f"/containers/{ref}/rename", params={"name": name})
        resp.raise_for_status()
        logger.info("Renamed container: %s -> %s", ref, name)

    async def remove(self, ref: str, force: bool = False) -> None:
        """Remove a container."""
        client = await self._docker.get()
        resp = await client.delete(
            f"/containers/{ref}", params={"force": "true" if force else "false"}
        )
        if resp.status_code == 404:
            logger.debug("Container not found: %s", ref)
            return
        resp.raise_for_status()
        logger.info("Removed container: %s", ref)

    async def stream_logs(self, ref: str) -> AsyncIterator[bytes]:
        """Stream raw container logs as the daemon sends them."""
        client = await self._docker.get()
        params = {"stdout": "true", "stderr": "true"}
        async with client.stream("GET", f"/containers/{ref}/logs", params=params) as resp:
            resp.raise_for_status()
            async for chunk in resp.aiter_bytes():
                yield chunk


# =============================================================================
# Image API
# =============================================================================


class ImageAPI:
    """Docker Image API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def list(self) -> list[dict]:
        """List local images."""
        client = await self._docker.get()
        resp = await client.get("/images/json")
        resp.raise_for_status()
        return resp.json()

    async def exists(self, image_ref: str) -> bool:
        """Check if image exists locally."""
        client = await self._docker.get()
        resp = await client.get(f"/images/{image_ref}/json")
        return resp.status_code == 200

    async def pull(self, image_ref: str) -> None:
        """Pull image from registry."""
        client = await self._docker.get()

        if ":" in image_ref.rsplit("/", 1)[-1]:
            image, tag = image_ref.rsplit(":", 1)
        else:
            image, tag = image_ref, "latest"

        logger.info("Pulling image: %s:%s", image, tag)
        resp = await client.post(
            "/images/create",
            params={"fromImage": image, "tag": tag},
            timeout=None,
        )
        resp.raise_for_status()
        logger.info("Pulled image: %s:%s", image, tag)

    async def ensure(self, image_ref: str) -> None:
        """Ensure image exists locally, pull if not."""
        if not await self.exists(image_ref):
            await self.pull(image_ref)
