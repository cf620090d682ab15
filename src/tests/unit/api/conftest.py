"""Fixtures for API unit tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from dockpanel.api.dependencies import PanelServices, get_services, reset_services
from dockpanel.config import LifecycleConfig, PanelConfig, RegistryConfig
from dockpanel.main import app


@pytest.fixture
def services(mock_runtime: AsyncMock) -> PanelServices:
    """Real services wired to a mocked runtime."""
    config = PanelConfig(
        registry=RegistryConfig(refresh_interval=60.0, refresh_timeout=2.0),
        lifecycle=LifecycleConfig(operation_timeout=2.0),
    )
    return PanelServices(config=config, runtime=mock_runtime)


@pytest.fixture
def client(services: PanelServices) -> TestClient:
    """Create test client with mocked services.

    Not entered as a context manager, so the lifespan (and its poller
    against the real daemon) never runs.
    """
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_services()
