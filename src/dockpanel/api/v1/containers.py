"""Container API endpoints.

Reads come from the registry snapshot; commands go through the lifecycle
coordinator, which refreshes the registry once the runtime has acted.
"""

import asyncio

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from dockpanel.api.dependencies import PanelServices, get_services
from dockpanel.api.v1.schemas import (
    ContainerListResponse,
    ContainerResponse,
    OperationResponse,
    RunRequest,
    RunResponse,
)
from dockpanel.core.errors import ContainerNotFoundError, UnavailableError
from dockpanel.core.models import RunSpec

router = APIRouter(prefix="/containers", tags=["containers"])


@router.get("", response_model=ContainerListResponse)
async def list_containers(
    services: PanelServices = Depends(get_services),
) -> ContainerListResponse:
    """List all containers across projects."""
    snapshot = services.registry.snapshot
    return ContainerListResponse(
        containers=[
            ContainerResponse.build(c, services.translator) for c in snapshot.containers
        ],
        stale=snapshot.stale,
    )


@router.post("", status_code=201, response_model=RunResponse)
async def run_container(
    request: RunRequest,
    services: PanelServices = Depends(get_services),
) -> RunResponse:
    """Create and start a new container."""
    container_id = await services.coordinator.run(request.to_spec())
    return RunResponse(id=container_id)


@router.get("/{container_id}", response_model=ContainerResponse)
async def get_container(
    container_id: str,
    services: PanelServices = Depends(get_services),
) -> ContainerResponse:
    """Get one container including its raw runtime configuration."""
    container = services.registry.find_container(container_id)
    return ContainerResponse.build(container, services.translator, include_config=True)


@router.put("/{container_id}", response_model=OperationResponse)
async def update_container(
    container_id: str,
    request: RunRequest,
    services: PanelServices = Depends(get_services),
) -> OperationResponse:
    """Rewrite container configuration. Applied on next start, no restart."""
    result = await services.coordinator.update(container_id, request.to_spec())
    return OperationResponse.from_result(result)


@router.delete("/{container_id}", response_model=OperationResponse)
async def remove_container(
    container_id: str,
    services: PanelServices = Depends(get_services),
) -> OperationResponse:
    """Remove a stopped container."""
    result = await services.coordinator.remove(container_id)
    return OperationResponse.from_result(result)


@router.post("/{container_id}/start", response_model=OperationResponse)
async def start_container(
    container_id: str,
    services: PanelServices = Depends(get_services),
) -> OperationResponse:
    """Start a container (no-op if already running)."""
    result = await services.coordinator.start(container_id)
    return OperationResponse.from_result(result)


@router.post("/{container_id}/stop", response_model=OperationResponse)
async def stop_container(
    container_id: str,
    services: PanelServices = Depends(get_services),
) -> OperationResponse:
    """Stop a container (no-op if not running)."""
    result = await services.coordinator.stop(container_id)
    return OperationResponse.from_result(result)


@router.get("/{container_id}/clone", response_model=RunSpec)
async def clone_container(
    container_id: str,
    services: PanelServices = Depends(get_services),
) -> RunSpec:
    """Derive a run spec for a copy of the container. Nothing is created."""
    return await services.coordinator.clone(container_id)


@router.get("/{container_id}/logs")
async def container_logs(
    container_id: str,
    services: PanelServices = Depends(get_services),
) -> StreamingResponse:
    """Stream raw runtime log output."""
    try:
        container = await asyncio.wait_for(
            services.runtime.inspect(container_id),
            timeout=services.config.lifecycle.operation_timeout,
        )
    except asyncio.TimeoutError as e:
        raise UnavailableError("Cannot read logs: runtime did not answer in time") from e
    except httpx.HTTPError as e:
        raise UnavailableError(f"Cannot read logs: {e}") from e
    if container is None:
        raise ContainerNotFoundError(f"Container {container_id} not found")

    return StreamingResponse(
        services.runtime.logs(container_id),
        media_type="text/plain; charset=utf-8",
    )
