"""Project API endpoints."""

from fastapi import APIRouter, Depends

from dockpanel.api.dependencies import PanelServices, get_services
from dockpanel.api.v1.schemas import (
    ContainerResponse,
    ProjectListResponse,
    ProjectResponse,
)
from dockpanel.core.errors import UnavailableError

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    services: PanelServices = Depends(get_services),
) -> ProjectListResponse:
    """List projects with their containers.

    Served from the registry snapshot. Before the first successful refresh
    an on-demand refresh is attempted; if the runtime is down the response
    is empty and marked stale.
    """
    if services.registry.snapshot.refreshed_at is None:
        try:
            await services.registry.refresh()
        except UnavailableError:
            pass

    snapshot = services.registry.snapshot
    return ProjectListResponse(
        projects=[
            ProjectResponse(
                name=project.name,
                containers=[
                    ContainerResponse.build(c, services.translator) for c in project.containers
                ],
            )
            for project in snapshot.projects
        ],
        stale=snapshot.stale,
        refreshed_at=snapshot.refreshed_at,
    )
