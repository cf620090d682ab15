"""Network API endpoints."""

from fastapi import APIRouter, Depends

from dockpanel.api.dependencies import PanelServices, get_services
from dockpanel.api.v1.schemas import ForwardsResponse

router = APIRouter(prefix="/network", tags=["network"])


@router.get("/forwards", response_model=ForwardsResponse)
async def list_forwards(
    services: PanelServices = Depends(get_services),
) -> ForwardsResponse:
    """Host listener -> bridge target pairs for running containers."""
    table = services.translator.forwarding_table(services.registry.projects())
    return ForwardsResponse(forwards=table)
