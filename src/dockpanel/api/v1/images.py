"""Image API endpoints."""

import asyncio

import httpx
from fastapi import APIRouter, Depends

from dockpanel.api.dependencies import PanelServices, get_services
from dockpanel.api.v1.schemas import ImageListResponse
from dockpanel.core.errors import UnavailableError

router = APIRouter(prefix="/images", tags=["images"])


@router.get("", response_model=ImageListResponse)
async def list_images(
    services: PanelServices = Depends(get_services),
) -> ImageListResponse:
    """List image references in the runtime's local store."""
    try:
        images = await asyncio.wait_for(
            services.runtime.list_images(),
            timeout=services.config.lifecycle.operation_timeout,
        )
    except asyncio.TimeoutError as e:
        raise UnavailableError("Cannot list images: runtime did not answer in time") from e
    except httpx.HTTPError as e:
        raise UnavailableError(f"Cannot list images: {e}") from e
    return ImageListResponse(images=images)
