"""API dependencies for dependency injection."""

from dockpanel.config import PanelConfig, get_config
from dockpanel.core.interfaces import ContainerRuntime
from dockpanel.core.lifecycle import LifecycleCoordinator
from dockpanel.core.poller import RegistryPoller
from dockpanel.core.ports import PortTranslator
from dockpanel.core.registry import ContainerRegistry
from dockpanel.runtimes import DockerRuntime


class PanelServices:
    """Everything a request handler needs, wired once at startup.

    Passed to handlers explicitly instead of living in module globals the
    handlers reach into.
    """

    def __init__(
        self,
        config: PanelConfig | None = None,
        runtime: ContainerRuntime | None = None,
    ) -> None:
        self.config = config or get_config()
        self.runtime = runtime or DockerRuntime(self.config.docker)
        self.registry = ContainerRegistry(self.runtime, self.config.registry)
        self.coordinator = LifecycleCoordinator(
            self.runtime, self.registry, self.config.lifecycle
        )
        self.translator = PortTranslator(self.config.network)
        self.poller = RegistryPoller(self.registry, self.config.registry.refresh_interval)

    async def start(self) -> None:
        self.poller.start()

    async def close(self) -> None:
        await self.poller.stop()
        await self.coordinator.wait_idle()
        await self.runtime.close()


# Singleton services instance
_services: PanelServices | None = None


async def init_services() -> None:
    """Initialize services singleton and start the registry poller.

    Must be called during app startup.
    """
    global _services
    _services = PanelServices()
    await _services.start()


async def close_services() -> None:
    """Stop background work and release resources."""
    global _services
    if _services:
        await _services.close()
        _services = None


def get_services() -> PanelServices:
    """Get services singleton.

    Raises:
        RuntimeError: If called before init_services().
    """
    if _services is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    return _services


def reset_services() -> None:
    """Reset services singleton (for testing)."""
    global _services
    _services = None
