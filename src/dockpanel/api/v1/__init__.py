"""API v1 module."""

from dockpanel.api.v1.containers import router as containers_router
from dockpanel.api.v1.health import router as health_router
from dockpanel.api.v1.images import router as images_router
from dockpanel.api.v1.network import router as network_router
from dockpanel.api.v1.projects import router as projects_router

__all__ = [
    "containers_router",
    "health_router",
    "images_router",
    "network_router",
    "projects_router",
]
